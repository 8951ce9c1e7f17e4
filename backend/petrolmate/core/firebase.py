"""
Firebase integration for the PetrolMate crawler
Realtime Database handle used by the persistence writer
"""
import base64
import copy
import json
import logging
import threading
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, db as rtdb

from petrolmate.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _split_path(path: str) -> list:
    return [part for part in path.strip('/').split('/') if part]


class MockRealtimeDatabase:
    """In-memory Realtime Database for development without Firebase credentials"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._root: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.RLock()
        logger.info("🔧 Using Mock Realtime Database for development")

    def reference(self, path: str = '/') -> 'MockReference':
        """Return a mock reference to the node at path"""
        return MockReference(self, _split_path(path))

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the whole tree"""
        with self._lock:
            return copy.deepcopy(self._root)


class MockReference:
    """Mock of firebase_admin.db.Reference (get/set/update/delete)"""

    def __init__(self, database: MockRealtimeDatabase, parts: list):
        self._database = database
        self._parts = parts

    @property
    def path(self) -> str:
        return '/' + '/'.join(self._parts)

    @property
    def key(self) -> Optional[str]:
        return self._parts[-1] if self._parts else None

    def child(self, path: str) -> 'MockReference':
        return MockReference(self._database, self._parts + _split_path(path))

    def get(self) -> Any:
        """Get a copy of the data at this node, or None"""
        with self._database._lock:
            node: Any = self._database._root
            for part in self._parts:
                if not isinstance(node, dict) or part not in node:
                    return None
                node = node[part]
            return copy.deepcopy(node)

    def set(self, value: Any):
        """Overwrite this node; None deletes it"""
        if value is None:
            self.delete()
            return
        with self._database._lock:
            if not self._parts:
                if not isinstance(value, dict):
                    raise ValueError("Root value must be a dictionary")
                self._database._root = copy.deepcopy(value)
                return
            parent = self._database._root
            for part in self._parts[:-1]:
                if not isinstance(parent.get(part), dict):
                    parent[part] = {}
                parent = parent[part]
            parent[self._parts[-1]] = copy.deepcopy(value)

    def update(self, value: Dict[str, Any]):
        """Write each named child, leaving other children untouched"""
        if not value or not isinstance(value, dict):
            raise ValueError('Value argument must be a non-empty dictionary.')
        with self._database._lock:
            for key, child_value in value.items():
                self.child(key).set(child_value)

    def delete(self):
        """Remove this node"""
        with self._database._lock:
            if not self._parts:
                self._database._root = {}
                return
            parent: Any = self._database._root
            for part in self._parts[:-1]:
                if not isinstance(parent, dict) or part not in parent:
                    return
                parent = parent[part]
            if isinstance(parent, dict):
                parent.pop(self._parts[-1], None)


class FirebaseClient:
    """Firebase Admin SDK client singleton"""

    _instance = None
    _initialized = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(FirebaseClient, cls).__new__(cls)
        return cls._instance

    def __init__(self, app_settings: Optional[Settings] = None):
        if not self._initialized:
            self._initialize_firebase(app_settings or default_settings)
            self._initialized = True

    def _initialize_firebase(self, app_settings: Settings):
        """
        Initialize Firebase Admin SDK
        Supports four modes:
        1. Mock mode (USE_MOCK_FIREBASE=True) - in-memory tree, no network
        2. GOOGLE_APPLICATION_CREDENTIALS pointing to a key file
        3. FIREBASE_CREDENTIALS_JSON with an inline JSON string
        4. Individual service account fields with PRIVATE_KEY_BASE64
        """
        if app_settings.USE_MOCK_FIREBASE:
            logger.warning("🔧 Running in MOCK mode - using in-memory database (no real Firebase)")
            self._database = MockRealtimeDatabase()
            self._mock_mode = True
            return

        try:
            cred = credentials.Certificate(build_credentials(app_settings))

            firebase_admin.initialize_app(cred, {
                'databaseURL': app_settings.FIREBASE_DATABASE_URL
            })

            # firebase_admin.db exposes reference(path) at module level
            self._database = rtdb
            self._mock_mode = False

            logger.info(f"✅ Firebase initialized for {app_settings.FIREBASE_DATABASE_URL}")

        except Exception as e:
            logger.error(f"❌ Failed to initialize Firebase: {e}")
            raise

    @property
    def database(self):
        """Realtime Database handle exposing reference(path)"""
        return self._database

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode


def build_credentials(app_settings: Settings):
    """
    Resolve the service account used to initialise Firebase.

    Returns:
        Path to a key file, or a service account dictionary

    Raises:
        ValueError: If no credential source is configured
    """
    if app_settings.GOOGLE_APPLICATION_CREDENTIALS:
        logger.info(f"Loading Firebase credentials from {app_settings.GOOGLE_APPLICATION_CREDENTIALS}")
        return app_settings.GOOGLE_APPLICATION_CREDENTIALS

    if app_settings.FIREBASE_CREDENTIALS_JSON:
        logger.info("Loading Firebase credentials from FIREBASE_CREDENTIALS_JSON environment variable")
        return json.loads(app_settings.FIREBASE_CREDENTIALS_JSON)

    if app_settings.PRIVATE_KEY_BASE64 and app_settings.CLIENT_EMAIL:
        logger.info("Loading Firebase credentials from service account environment fields")
        return {
            "type": app_settings.TYPE,
            "project_id": app_settings.PROJECT_ID,
            "private_key_id": app_settings.PRIVATE_KEY_ID,
            "private_key": base64.b64decode(app_settings.PRIVATE_KEY_BASE64).decode('utf-8'),
            "client_email": app_settings.CLIENT_EMAIL,
            "client_id": app_settings.CLIENT_ID,
            "auth_uri": app_settings.AUTH_URI,
            "token_uri": app_settings.TOKEN_URI,
            "auth_provider_x509_cert_url": app_settings.AUTH_PROVIDER_X509_CERT_URL,
            "client_x509_cert_url": app_settings.CLIENT_X509_CERT_URL,
            "universe_domain": app_settings.UNIVERSE_DOMAIN,
        }

    raise ValueError(
        "Firebase credentials not found. Please set either:\n"
        "  - USE_MOCK_FIREBASE=True (for development), or\n"
        "  - GOOGLE_APPLICATION_CREDENTIALS=/path/to/firebase-key.json, or\n"
        "  - FIREBASE_CREDENTIALS_JSON='{...}' (inline JSON string), or\n"
        "  - PRIVATE_KEY_BASE64 and CLIENT_EMAIL (service account fields)"
    )


def get_database(app_settings: Optional[Settings] = None):
    """Get the shared Realtime Database handle, initialising Firebase on first use"""
    return FirebaseClient(app_settings).database
