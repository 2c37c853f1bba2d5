"""Resolve the database connection string at process startup.

The URL comes from ``DATABASE_URL`` when it is set. Otherwise it is read from
AWS Secrets Manager, where the secret may hold either a complete connection
string or a JSON document with credentials. Host, database name, port and
extra query parameters for the JSON form may come from the environment
(preferred) or from the secret itself, as in the RDS-managed secret layout.
"""
import json
import logging
import os
import re
from collections.abc import Mapping
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from backend.core import config
from backend.core.errors import ConfigError

logger = logging.getLogger(__name__)

_URL_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*://\S+$')

URL_KEYS = ('DATABASE_URL', 'database_url', 'url', 'connectionString', 'connection_string')
USER_KEYS = ('user', 'username', 'dbUser', 'DB_USER')
PASSWORD_KEYS = ('password', 'dbPassword', 'DB_PASSWORD')
HOST_KEYS = ('host', 'hostname')
DATABASE_KEYS = ('db', 'database', 'dbname', 'DB_NAME')


def is_connection_string(value: str) -> bool:
    return bool(_URL_PATTERN.match(value.strip()))


def build_database_url(
    user: str,
    password: str,
    host: str,
    port: int,
    database: str,
    params: str = '',
    drivername: str = config.DEFAULT_DB_DRIVER,
) -> str:
    base = f'{drivername}://{quote(user, safe="")}:{quote(password, safe="")}@{host}:{port}/{database}'
    params = str(params or '').strip()
    return f'{base}?{params}' if params else base


def fetch_secret_string(secret_id: str, region: str, secrets_client=None) -> str | None:
    client = secrets_client or boto3.client('secretsmanager', region_name=region)
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except (BotoCoreError, ClientError) as exc:
        raise ConfigError(f'Could not read secret {secret_id}: {exc}') from exc

    if response.get('SecretString'):
        return response['SecretString']
    if response.get('SecretBinary'):
        return response['SecretBinary'].decode('utf-8')
    return None


def _first(mapping: Mapping, keys: tuple[str, ...]):
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


def resolve_database_url(environ: Mapping[str, str] | None = None, secrets_client=None) -> str:
    env = os.environ if environ is None else environ

    existing = (env.get('DATABASE_URL') or '').strip()
    if existing:
        logger.info('Using DATABASE_URL from environment')
        return existing

    region = env.get('AWS_REGION') or env.get('AWS_DEFAULT_REGION') or config.DEFAULT_AWS_REGION
    full_arn = env.get('DB_CONNECTION_STRING_SECRET_ARN')
    userpass_arn = env.get('DB_USERPASS_SECRET_ARN') or full_arn or env.get('AWS_SECRET_NAME')

    secret = None
    if full_arn:
        secret = fetch_secret_string(full_arn, region, secrets_client)
        if not secret:
            raise ConfigError('Secret (connection string) had no content')
        if is_connection_string(secret):
            logger.info('Using connection string secret %s', full_arn)
            return secret.strip()

    if not userpass_arn:
        raise ConfigError(
            'No database configuration found. Set DATABASE_URL, DB_CONNECTION_STRING_SECRET_ARN '
            '(full URL) or DB_USERPASS_SECRET_ARN (user/password JSON).'
        )

    if userpass_arn != full_arn:
        secret = fetch_secret_string(userpass_arn, region, secrets_client)
    if not secret:
        raise ConfigError('Secret (user/password) had no content')

    secret = secret.strip()
    if is_connection_string(secret):
        logger.info('Using connection string secret %s', userpass_arn)
        return secret

    try:
        parsed = json.loads(secret)
    except ValueError as exc:
        raise ConfigError(
            'Secret is not a URL and not valid JSON. Expected a connection string or JSON with credentials.'
        ) from exc
    if not isinstance(parsed, dict):
        raise ConfigError('Secret JSON must be an object.')

    url_field = _first(parsed, URL_KEYS)
    if isinstance(url_field, str) and is_connection_string(url_field):
        logger.info('Using connection string field from secret %s', userpass_arn)
        return url_field.strip()

    user = _first(parsed, USER_KEYS)
    password = _first(parsed, PASSWORD_KEYS)
    if not user or not password:
        raise ConfigError('Secret JSON missing user/password (expected keys like user/username and password).')

    host = env.get('DB_HOST') or _first(parsed, HOST_KEYS)
    database = env.get('DB_NAME') or _first(parsed, DATABASE_KEYS)
    if not host or not database:
        raise ConfigError('DB host/name not provided. Set DB_HOST and DB_NAME or include host/dbname in the secret.')

    raw_port = env.get('DB_PORT') or parsed.get('port') or config.DEFAULT_DB_PORT
    try:
        port = int(raw_port)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'Invalid database port: {raw_port!r}') from exc

    params = env.get('DB_PARAMS') or parsed.get('params') or ''
    drivername = env.get('DB_DRIVER') or config.DEFAULT_DB_DRIVER

    logger.info('Built database URL from credentials secret %s (host=%s, db=%s)', userpass_arn, host, database)
    return build_database_url(str(user), str(password), str(host), port, str(database), params, drivername)
