from backend.models.user import Role


def test_admin_stats_reject_students_and_accept_admins(client, login_as) -> None:
    student = login_as('Student', 'student@x.com')
    admin = login_as('Admin', 'admin@x.com', Role.admin)

    assert client.get('/dashboard/admin', headers=student).status_code == 403

    response = client.get('/dashboard/admin', headers=admin)

    assert response.status_code == 200
    assert response.json() == {
        'total_users': 2,
        'total_students': 1,
        'total_instructors': 0,
        'total_admins': 1,
        'total_courses': 0,
    }


def test_instructor_stats_count_distinct_students(client, login_as) -> None:
    instructor = login_as('Instructor', 'instructor@x.com', Role.instructor)
    course_ids = [
        client.post('/courses', json={'title': title, 'description': 'd'}, headers=instructor).json()['id']
        for title in ('One', 'Two')
    ]
    student = login_as('Student', 'student@x.com')
    for course_id in course_ids:
        client.post(f'/students/enroll/{course_id}', headers=student)

    response = client.get('/dashboard/instructor', headers=instructor)

    assert response.status_code == 200
    assert response.json() == {'total_courses': 2, 'total_students': 1, 'total_progress_entries': 0}


def test_instructor_stats_reject_students(client, login_as) -> None:
    student = login_as('Student', 'student@x.com')

    assert client.get('/dashboard/instructor', headers=student).status_code == 403
