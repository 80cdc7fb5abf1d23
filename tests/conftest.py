import pytest
from sqlalchemy import Boolean, Column, Float, Integer, Text
from sqlalchemy.orm import Session, declarative_base

from tableset import DbConfig, DbContext

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    age = Column(Integer, nullable=True)
    active = Column(Boolean, nullable=True)
    score = Column(Float, nullable=True)
    # attribute name differs from the column name on purpose
    nick = Column("nickname", Text, nullable=True)

    def __repr__(self):
        return f"<User id={self.user_id} name={self.name}>"


@pytest.fixture
def user_model():
    return User


@pytest.fixture
def db_config(tmp_path):
    return DbConfig(data_type="sqlite", connection_string=str(tmp_path / "tableset.db"))


@pytest.fixture
def db_context(db_config):
    ctx = DbContext(db_config)
    Base.metadata.create_all(ctx.engine)
    yield ctx
    ctx.dispose()


@pytest.fixture
def users(db_context):
    return db_context.table(User)


@pytest.fixture
def seeded_users(db_context):
    """Five users with predictable ages 20, 25, ... 40."""
    rows = [
        User(name="alice", age=20, active=True, score=1.5, nick="al"),
        User(name="bob", age=25, active=False, score=2.5),
        User(name="carol", age=30, active=True, score=3.5),
        User(name="dave", age=35, active=False, score=None),
        User(name="erin", age=40, active=True, score=5.25),
    ]
    with Session(db_context.engine) as session:
        session.add_all(rows)
        session.commit()
    return db_context.table(User)
