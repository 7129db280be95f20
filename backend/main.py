import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.session_store import InMemorySessionStore
from backend.core.config import Settings, load_settings, validate_runtime_config
from backend.core.errors import AppError, AuthenticationFailure
from backend.database import build_engine, build_session_factory, init_schema
from backend.routes import auth_routes, course_routes, dashboard_routes, student_routes

logger = logging.getLogger(__name__)


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    headers = {'WWW-Authenticate': 'Bearer'} if isinstance(exc, AuthenticationFailure) else None
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.detail}, headers=headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [str(error.get('msg', 'Invalid value')) for error in exc.errors()]
    return JSONResponse(status_code=400, content={'detail': 'Invalid request data', 'errors': messages})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    validate_runtime_config(settings)

    app = FastAPI(title='Learning Platform API')
    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.memory_session_store = InMemorySessionStore() if settings.token_store == 'memory' else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization'],
    )

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.on_event('startup')
    def initialize_database() -> None:
        try:
            init_schema(app.state.engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')

    @app.get('/')
    def root():
        return {'status': 'Learning Platform API Running'}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(course_routes.router, prefix='/courses')
    app.include_router(student_routes.router, prefix='/students')
    app.include_router(dashboard_routes.router, prefix='/dashboard')

    return app


app = create_app()
