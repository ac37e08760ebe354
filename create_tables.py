"""
Database setup script
Creates the taxonomy, problem, classification and exam tables
"""

from database.database import engine, Base
from database.models import (
    ExpandedMathType,
    Problem, Classification,
    Exam, ExamProblem,
)

def create_tables():
    """Create all tables in the database"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created successfully!")
    print("\nCreated tables:")
    print(f"  - {ExpandedMathType.__tablename__}")
    print(f"  - {Problem.__tablename__}, {Classification.__tablename__}")
    print(f"  - {Exam.__tablename__}, {ExamProblem.__tablename__}")

if __name__ == "__main__":
    create_tables()
