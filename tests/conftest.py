import pytest
import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

# Настройки читаются при импорте, поэтому до импорта приложения
os.environ["CACHE_ENABLED"] = "false"
os.environ["SEED_REFERENCE_DATA"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///./test_coded.db"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coded.domain.entities import RequestContext
from coded.infrastructure.db import get_db
from coded.infrastructure.models import Base, LearningModuleORM, LessonORM, LearningContentORM
from coded.infrastructure.ratelimit import limiter
from coded.infrastructure.repositories import UserRepository
from coded.infrastructure.seed import seed_reference_data
from coded.main import app

# Тестовая БД в памяти, одно соединение на все сессии
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    """Сессия БД с чистыми таблицами и справочниками"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    seed_reference_data(session)
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    """Фикстура для тестового клиента"""
    app.dependency_overrides[get_db] = override_get_db
    # Отключаем rate limiting в тестах
    limiter.enabled = False
    yield TestClient(app)
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def make_user(db):
    """Создаёт пользователя и возвращает контекст запроса от его имени"""
    def _make(username: str = "learner") -> RequestContext:
        user = UserRepository(db).create(username, f"{username}@example.com", "not-a-real-hash")
        db.commit()
        return RequestContext(user=user)
    return _make


@pytest.fixture
def make_module(db):
    """Создаёт модуль с N уроками, возвращает (module_id, [lesson_id, ...])"""
    counter = {"n": 0}

    def _make(lessons: int = 3, language: str = "python") -> tuple[int, list[int]]:
        counter["n"] += 1
        module = LearningModuleORM(title=f"Module {counter['n']}", language=language,
                                   difficulty="beginner", order_index=counter["n"])
        db.add(module)
        db.flush()
        lesson_ids = []
        for i in range(lessons):
            lesson = LessonORM(module_id=module.id, title=f"Lesson {i + 1}", order_index=i + 1)
            db.add(lesson)
            db.flush()
            db.add(LearningContentORM(lesson_id=lesson.id, content_type="text",
                                      content=f"Content {i + 1}", content_order=1))
            lesson_ids.append(lesson.id)
        db.commit()
        return module.id, lesson_ids
    return _make


def xp_of(db, user_id: int) -> int:
    return UserRepository(db).get(user_id).xp_points


@pytest.fixture
def xp():
    return xp_of


def register(client: TestClient, username: str = "learner", password: str = "password123") -> dict:
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com",
              "password": password, "confirm_password": password},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def register_user():
    return register


@pytest.fixture
def session_factory():
    """Фабрика независимых сессий на той же тестовой БД"""
    return TestingSessionLocal
