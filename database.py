import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from flask import current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'json_store'


class StoreError(Exception):
    """Base class for failures of the JSON data file."""


class StoreCorruptError(StoreError):
    """The data file exists but does not hold a JSON object."""


def utc_isoformat():
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def empty_system():
    return {'totalTourists': 0, 'totalEmergencies': 0, 'blockHeight': 0}


def empty_store():
    return {'tourists': {}, 'emergencies': {}, 'system': empty_system()}


def new_tourist(tourist_id, blockchain_hash, name=None, phone=None, nationality=None, emergency_contacts=None):
    return {
        'id': tourist_id,
        'name': name,
        'phone': phone,
        'nationality': nationality,
        'emergencyContacts': emergency_contacts or [],
        'blockchainHash': blockchain_hash,
        'isActive': True,
        'registeredAt': utc_isoformat(),
    }


def new_emergency(emergency_id, emergency_type=None, description=None, location=None):
    return {
        'id': emergency_id,
        'type': emergency_type,
        'description': description,
        'location': location,
        'status': 'OPEN',
        'timestamp': utc_isoformat(),
    }


def _complete(data):
    # Missing or malformed sections and counters are replaced with zero values.
    for section in ('tourists', 'emergencies', 'system'):
        if not isinstance(data.get(section), dict):
            data[section] = {}
    system = data['system']
    for key, value in empty_system().items():
        count = system.get(key)
        if not isinstance(count, int) or isinstance(count, bool):
            system[key] = value
    return data


class _FileBackend:
    """One data file plus the lock that serializes every access to it."""

    def __init__(self, path, reset_corrupt=True):
        self.path = Path(path)
        self.reset_corrupt = reset_corrupt
        self.lock = threading.Lock()

    def load(self):
        if not self.path.exists():
            data = empty_store()
            self.save(data)
            logger.info("Created new data file at %s", self.path)
            return data
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            if not self.reset_corrupt:
                logger.error("Data file %s is unreadable, leaving it for manual recovery: %s", self.path, e)
                raise StoreCorruptError(f"Data file {self.path} is corrupt: {e}") from e
            logger.error("Failed reading data file %s, reinitializing: %s", self.path, e)
            data = empty_store()
            self.save(data)
            return data
        return _complete(data)

    def save(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=self.path.name + '.', suffix='.tmp', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise


class JsonStore:
    """
    Flask extension that owns the JSON data file of an application.

    ``init_app`` binds a data file to an app; inside a request or app context
    every call works on the file of ``current_app``.
    """

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.config.setdefault('DATA_FILE', 'data.json')
        app.config.setdefault('RESET_CORRUPT_STORE', True)
        app.extensions[EXTENSION_KEY] = _FileBackend(
            app.config['DATA_FILE'],
            reset_corrupt=app.config['RESET_CORRUPT_STORE'],
        )

    @property
    def backend(self):
        return current_app.extensions[EXTENSION_KEY]

    @property
    def path(self):
        return self.backend.path

    def load(self):
        return self.backend.load()

    def save(self, data):
        self.backend.save(data)

    def snapshot(self):
        """Read the whole store without changing it."""
        backend = self.backend
        with backend.lock:
            return backend.load()

    @contextmanager
    def transaction(self):
        """
        Load the store, hand it to the caller for mutation and write it back.
        Nothing is written if the block raises.
        """
        backend = self.backend
        with backend.lock:
            data = backend.load()
            yield data
            backend.save(data)


db = JsonStore()
