from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import redis.asyncio as aioredis
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN
from sqlalchemy.engine.url import make_url

import marginalia.lib.json as json
from marginalia.storage.cache import CachePolicy, CacheStore, InMemoryCacheStore, RedisCacheStore

from ..config.cache import CacheTTLSettings
from ..config.secrets import PostgresqlSecrets
from ..config.storage import CacheBackendSettings, PersistentSettings, RedisSettings
from ..di import NotReady
from ..provider import LoggingProvider


def provide_dsn(config: PersistentSettings, secrets: PostgresqlSecrets) -> DSN:
    if config.url is not None:
        return make_url(config.url)

    assert config.postgresql is not None
    return DSN.create(
        config.postgresql.driver,
        port=config.postgresql.port,
        host=str(config.postgresql.host) if config.postgresql.host else None,
        username=secrets.username.get_secret_value() if secrets.username else None,
        password=secrets.password.get_secret_value() if secrets.password else None,
        database=config.postgresql.database,
    )


def provide_alembic_conf(
    migration_path: Path, config: PersistentSettings, secrets: PostgresqlSecrets, root: Path | NotReady
) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    dsn = provide_dsn(config, secrets)
    escaped_str = dsn.render_as_string(hide_password=False).replace("%", "%%")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(
    config: PersistentSettings, secrets: PostgresqlSecrets, logging: LoggingProvider
) -> sqlalchemy.Engine:
    logger = logging.get_logger()

    dsn = provide_dsn(config, secrets)
    kwargs: dict[str, t.Any] = dict(echo=config.echo, json_serializer=json.dumps, json_deserializer=json.loads)
    if dsn.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if dsn.database in (None, "", ":memory:"):
            # one connection, or every session would see its own empty database
            kwargs["poolclass"] = sqlalchemy.pool.StaticPool
        engine = sqlalchemy.create_engine(dsn, **kwargs)
        sqlalchemy.event.listen(engine, "connect", enable_foreign_keys)
    else:
        engine = sqlalchemy.create_engine(dsn, **kwargs)
        sqlalchemy.event.listen(engine, "connect", register_timezone)

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": dsn.drivername,
            "database": dsn.database,
            "host": dsn.host,
            "port": dsn.port,
        },
    )
    return engine


def provide_sessionmaker(engine: sqlalchemy.Engine) -> sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]:
    return sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False, autobegin=False)


def provide_session(
    sessionmaker: sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session],
) -> sqlalchemy.orm.Session:
    """Create a new session. The caller closes it."""
    return sessionmaker()


def provide_redis_client(config: dict[str, t.Any] | None) -> aioredis.Redis | None:  # type: ignore[type-arg]
    """Create an async Redis client.

    Uses Unix socket if configured, otherwise TCP connection.
    Returns None if Redis is not configured.
    """
    if not config:
        return None

    settings = RedisSettings.model_validate(config)
    if settings.socket_path:
        return aioredis.Redis(
            unix_socket_path=str(settings.socket_path),
            db=settings.database,
            decode_responses=False,
        )

    return aioredis.Redis(
        host=settings.host,
        port=settings.port,
        db=settings.database,
        decode_responses=False,
    )


def provide_cache_store(
    client: aioredis.Redis | None,  # type: ignore[type-arg]
    namespace: str,
) -> CacheStore:
    """Uses RedisCacheStore if Redis is configured, otherwise InMemoryCacheStore."""
    if client is not None:
        return RedisCacheStore(client, namespace=namespace)
    return InMemoryCacheStore()


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        config=config.as_(PersistentSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.as_(PersistentSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        logging=logging,
    )
    sessionmaker: Provider[sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]] = Singleton(
        provide_sessionmaker, engine=engine
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, sessionmaker=sessionmaker)


class CacheContainer(DeclarativeContainer):
    config: Provider[CacheBackendSettings] = Configuration()
    ttl = Configuration()

    redis_client: Provider[aioredis.Redis | None] = Singleton(  # type: ignore[type-arg]
        provide_redis_client,
        config=config.redis,
    )
    store: Provider[CacheStore] = Singleton(provide_cache_store, client=redis_client, namespace=config.namespace)
    policy: Provider[CachePolicy] = Singleton(CachePolicy, store=store, ttl=ttl.as_(CacheTTLSettings))


class StorageContainer(DeclarativeContainer):
    config = Configuration(strict=True)
    secrets = Configuration(strict=True)
    cache_ttl = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )
    cache: Provider[CacheContainer] = Container(CacheContainer, config=config.cache, ttl=cache_ttl)


def enable_foreign_keys(dbapi_conn: t.Any, _: t.Any) -> None:
    # sqlite ignores ON DELETE CASCADE unless asked not to
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    """Set connection timezone to UTC for consistent datetime handling.

    PostgreSQL TIMESTAMP WITH TIME ZONE stores timestamps in UTC but returns
    them converted to the connection's timezone.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("SET TIMEZONE TO 'UTC'")
    cursor.close()
