import pytest
import structlog
from structlog.testing import LogCapture, ReturnLogger
from fastapi.testclient import TestClient

from event_ingest.config import Settings
from event_ingest.main import create_app
from event_ingest.metrics import Metrics


@pytest.fixture
def log_capture():
    return LogCapture()


@pytest.fixture
def logger(log_capture):
    return structlog.wrap_logger(ReturnLogger(), processors=[log_capture])


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def metrics():
    return Metrics()


@pytest.fixture
def app(settings, logger, metrics):
    return create_app(settings=settings, logger=logger, metrics=metrics)


@pytest.fixture
def client(app):
    return TestClient(app)
