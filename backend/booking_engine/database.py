"""
数据库配置 - SQLAlchemy 持久化层

预订写入依赖数据库事务串行化：
- SQLite: 写事务以 BEGIN IMMEDIATE 开启，取得库级写锁；只读事务为普通 BEGIN，不加锁
- 其他方言: 提交预订前对房间行执行 SELECT ... FOR UPDATE
"""
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from booking_engine.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# 连接执行选项，取值 "IMMEDIATE" 时 SQLite 事务以写锁开启
SQLITE_BEGIN_OPTION = "sqlite_begin"


def configure_sqlite(engine: Engine, busy_timeout: float = settings.SQLITE_BUSY_TIMEOUT) -> Engine:
    """
    为 SQLite 引擎注册连接与事务钩子

    pysqlite 默认延迟发出 BEGIN，读-判断-写之间没有写锁；
    这里关闭驱动自身的事务管理，改为由 SQLAlchemy 在事务开始时发出 BEGIN。
    连接带有 sqlite_begin 执行选项时发出 BEGIN IMMEDIATE，见 begin_write_transaction。
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout * 1000)}")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION)
        conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")

    return engine


def begin_write_transaction(db: Session) -> None:
    """
    以写事务开启会话的下一个事务

    执行选项只在事务取得连接时生效，因此先结束会话中已有的事务
    （通常是同一请求里之前的只读查询）。
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={SQLITE_BEGIN_OPTION: "IMMEDIATE"})


def build_engine(url: str, **kwargs) -> Engine:
    """按 URL 创建引擎，SQLite 自动挂载写锁钩子"""
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.SQLITE_BUSY_TIMEOUT)
        engine = create_engine(url, connect_args=connect_args, **kwargs)
        return configure_sqlite(engine)
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """依赖注入：获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """初始化数据库表"""
    from booking_engine.models import ontology  # noqa
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Database schema ready ({target.url.drivername})")
