import pytest

from ayuda.config import Settings
from ayuda.services.capabilities import Voice


@pytest.fixture
def test_settings():
    return Settings(
        backend_base_url="http://backend.test",
        backend_timeout_seconds=1.0,
        fallback_mode="classifier",
        listen_timeout_seconds=5.0,
        max_recognition_retries=3,
        recognition_retry_backoff_seconds=0.01,
        emergency_number="911",
    )


@pytest.fixture
def spanish_voices():
    return [Voice(name="Samantha", lang="en-US"), Voice(name="Paulina", lang="es-MX"), Voice(name="Jorge", lang="es-ES")]


@pytest.fixture
def critical_reply():
    return {
        "response": "EMERGENCIA CRÍTICA: Atragantamiento detectado.",
        "instructions": ["Colocarse detrás de la persona", "Realizar compresiones abdominales"],
        "shouldCallEmergency": True,
        "severity": "critical",
    }
