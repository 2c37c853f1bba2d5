import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend import database
from backend.core import config
from backend.core.errors import ConfigError
from backend.core.secrets import resolve_database_url
from backend.routes import auth_routes, course_routes

app = FastAPI(title='Course Site API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={'error': exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [error.get('msg', 'Invalid value') for error in exc.errors()]
    return JSONResponse(status_code=400, content={'error': 'Invalid input', 'details': details})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=500, content={'error': 'Internal server error'})


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    if database.engine is None:
        database.init_engine(resolve_database_url())
    try:
        database.create_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Course Site API Running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(course_routes.router, prefix='/api/courses')


def run() -> None:
    """Resolve configuration, then serve the API with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    try:
        config.validate_runtime_config()
        database.init_engine(resolve_database_url())
    except (ConfigError, RuntimeError) as exc:
        logger.error('Startup configuration failed: %s', exc)
        sys.exit(1)

    uvicorn.run(app, host='0.0.0.0', port=config.PORT)


if __name__ == '__main__':
    run()
