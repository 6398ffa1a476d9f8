import pytest

from models.schema import SPECIALTIES
from utils.ids import specialty_key


@pytest.fixture
def populated_doctors():
    return {
        "john_smith@example_com": {"name": "Dr. John Smith", "specialty": "Cardiologist"},
        "sarah_johnson@example_com": {"name": "Dr. Sarah Johnson", "specialty": "Dentist"},
        "a_b@example_com": {"name": "Dr. A B", "specialty": "Dentist"},
    }


@pytest.fixture
def partial_specialties():
    # first 12 canonical names, with a recognizable createdAt
    return {
        specialty_key(name): {"name": name, "description": f"Medical specialty: {name}", "createdAt": 111}
        for name in SPECIALTIES[:12]
    }
