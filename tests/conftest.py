import os

# must run before anything imports database.database
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from database.database import Base, SessionLocal, engine, get_db
from database import crud, models
from taxonomy.schemas import TypeRecord


def make_type(type_code: str, **overrides) -> TypeRecord:
    """Build a valid TypeRecord; level/domain/standard are derived from the code."""
    _, level, domain, std, _seq = type_code.split("-")
    fields = dict(
        type_code=type_code,
        type_name=f"유형 {type_code}",
        description="설명",
        solution_method="풀이",
        subject="수학",
        area="다항식",
        standard_code=f"[{level}-{domain}-{std}]",
        standard_content=f"성취기준 {std}",
        cognitive="CALCULATION",
        difficulty_min=1,
        difficulty_max=5,
        keywords=["키워드"],
        school_level="고등학교" if level.startswith("HS") else "중학교",
        level_code=level,
        domain_code=domain,
    )
    fields.update(overrides)
    return TypeRecord(**fields)


@pytest.fixture
def sample_types():
    """Two levels, three domains, four standards; input deliberately not in code order."""
    return [
        make_type("MA-HS0-POL-01-002", difficulty_min=2, difficulty_max=4),
        make_type("MA-HS0-POL-01-001", difficulty_min=1, difficulty_max=3),
        make_type("MA-HS0-POL-02-001", cognitive="UNDERSTANDING"),
        make_type("MA-HS0-EQU-05-001", area="방정식", cognitive="INFERENCE", difficulty_min=3, difficulty_max=5),
        make_type("MA-MS-FUN-03-001", area="함수", cognitive="PROBLEM_SOLVING"),
    ]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from main import app

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded_types(db, sample_types):
    crud.upsert_types(db, sample_types)
    return sample_types


@pytest.fixture
def make_problem(db):
    def _make(difficulty=None, subject="수학", chapter="다항식", is_active=True, content="$x^2-1$ 을 인수분해하시오."):
        problem = models.Problem(
            content_latex=content,
            subject=subject,
            chapter=chapter,
            difficulty=difficulty,
            is_active=is_active,
        )
        db.add(problem)
        db.commit()
        db.refresh(problem)
        return problem
    return _make
