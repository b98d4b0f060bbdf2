"""
Pytest configuration and shared fixtures for vis-site tests.
"""

from pathlib import Path
from typing import Any, Dict

import pytest


# Add the repo root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def memory_storage():
    """Empty in-memory local storage."""
    from vis_site.storage import MemoryLocalStorage

    return MemoryLocalStorage()


@pytest.fixture
def sqlite_storage(tmp_path: Path):
    """SQLite local storage in a temp directory."""
    from vis_site.storage import SQLiteLocalStorage

    storage = SQLiteLocalStorage(tmp_path / "local_storage.db")
    yield storage
    storage.close()


@pytest.fixture
def admission_fields() -> Dict[str, Any]:
    """Keyword arguments for a complete admission form."""
    return {
        "student_name": "Asha Verma",
        "parent_name": "Ravi Verma",
        "email": "ravi@example.org",
        "phone": "9876543210",
        "class_applying": "Class 5",
        "date_of_birth": "2015-06-01",
        "address": "12 School Road",
        "previous_school": None,
    }


@pytest.fixture
def contact_fields() -> Dict[str, Any]:
    """Keyword arguments for a complete contact form."""
    return {
        "name": "Meena",
        "email": "meena@example.org",
        "phone": "9000000000",
        "subject": "Fees",
        "message": "What is the fee structure for Class 3?",
    }


@pytest.fixture
def quiz_items() -> list[Dict[str, Any]]:
    """Well-formed quiz questions as the gateway returns them."""
    return [
        {
            "id": i,
            "question": f"Question {i}?",
            "options": ["A", "B", "C", "D"],
            "correctAnswer": i % 4,
            "explanation": f"Because {i}.",
        }
        for i in range(1, 11)
    ]

