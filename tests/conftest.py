"""Pytest fixtures for Voiceover Studio tests."""

import itertools
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from voiceover.models.content import Voiceover
from voiceover.models.synthesis import PreprocessResult, SpeakerTurn, SynthesisResult, VoiceConfig
from voiceover.services.approvals import ApprovalTracker
from voiceover.services.collaborators import CollaboratorRegistry
from voiceover.services.database import (
    CollaboratorRepository,
    UserDirectory,
    VoiceoverRepository,
)
from voiceover.services.generation import GenerationOrchestrator
from voiceover.services.queue import JobDispatcher
from voiceover.services.storage import SupabaseStorage
from voiceover.services.voiceovers import VoiceoverService
from voiceover.utils.errors import LLMError, TTSError

OWNER_ID = "user-owner"
OWNER_EMAIL = "owner@example.com"
ALICE_ID = "user-alice"
ALICE_EMAIL = "alice@example.com"
BOB_ID = "user-bob"
BOB_EMAIL = "bob@example.com"

# 2 seconds of 24kHz 16-bit mono
TWO_SECONDS_OF_AUDIO = b"\x00" * 96000


# ==================== Mock Supabase Client ====================


class MockSupabaseResponse:
    """Mock response from Supabase operations."""

    def __init__(self, data: Optional[List[Dict[str, Any]]] = None) -> None:
        self.data = data or []


class MockUniqueViolation(Exception):
    """Stands in for the PostgREST error raised on a unique index violation."""

    code = "23505"


class UniqueIndex:
    """A (partial) unique index: ``columns`` must be unique among rows matching ``where``."""

    def __init__(
        self,
        columns: Tuple[str, ...],
        where: Optional[Callable[[Dict[str, Any]], bool]] = None,
    ) -> None:
        self.columns = columns
        self.where = where or (lambda row: True)

    def key(self, row: Dict[str, Any]) -> Optional[Tuple[Any, ...]]:
        if not self.where(row):
            return None
        return tuple(row.get(column) for column in self.columns)


class MockSupabaseTable:
    """In-memory table: rows keyed by ``id`` in insertion order."""

    def __init__(self, name: str, indexes: Optional[List[UniqueIndex]] = None) -> None:
        self.name = name
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.indexes = [UniqueIndex(("id",))] + (indexes or [])
        self.fail_with: Optional[Exception] = None
        self.fail_on_insert: Optional[Exception] = None
        self._seq = itertools.count()
        self._order: Dict[str, int] = {}

    def check_unique(self, candidate: Dict[str, Any], ignore_id: Optional[str] = None) -> None:
        for index in self.indexes:
            key = index.key(candidate)
            if key is None:
                continue
            for row_id, row in self.rows.items():
                if row_id != ignore_id and index.key(row) == key:
                    raise MockUniqueViolation(
                        f"duplicate key value violates unique constraint on {self.name}{index.columns}"
                    )

    def put(self, row: Dict[str, Any]) -> Dict[str, Any]:
        self.check_unique(row)
        self.rows[row["id"]] = dict(row)
        self._order[row["id"]] = next(self._seq)
        return dict(row)

    def seq(self, row: Dict[str, Any]) -> int:
        return self._order.get(row["id"], 0)


class MockQuery:
    """Chained query builder mirroring the PostgREST client surface used by the services."""

    def __init__(self, table: MockSupabaseTable) -> None:
        self._table = table
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._action = "select"
        self._payload: Any = None
        self._order_by: List[Tuple[str, bool]] = []
        self._limit: Optional[int] = None
        self._range: Optional[Tuple[int, int]] = None

    def select(self, columns: str = "*") -> "MockQuery":
        self._action = "select"
        return self

    def insert(self, data: Any) -> "MockQuery":
        self._action = "insert"
        self._payload = data
        return self

    def update(self, data: Dict[str, Any]) -> "MockQuery":
        self._action = "update"
        self._payload = data
        return self

    def delete(self) -> "MockQuery":
        self._action = "delete"
        return self

    def eq(self, field: str, value: Any) -> "MockQuery":
        self._filters.append(lambda row: row.get(field) == value)
        return self

    def is_(self, field: str, value: str) -> "MockQuery":
        if value == "null":
            self._filters.append(lambda row: row.get(field) is None)
        else:
            self._filters.append(lambda row: row.get(field) == value)
        return self

    def in_(self, field: str, values: List[Any]) -> "MockQuery":
        allowed = list(values)
        self._filters.append(lambda row: row.get(field) in allowed)
        return self

    def order(self, field: str, desc: bool = False) -> "MockQuery":
        self._order_by.append((field, desc))
        return self

    def limit(self, count: int) -> "MockQuery":
        self._limit = count
        return self

    def range(self, start: int, end: int) -> "MockQuery":
        self._range = (start, end)
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        rows = [row for row in self._table.rows.values() if all(f(row) for f in self._filters)]
        for field, desc in reversed(self._order_by):
            # Insertion order breaks ties so equal timestamps sort deterministically
            rows.sort(key=lambda row: (row.get(field) or "", self._table.seq(row)), reverse=desc)
        return rows

    def execute(self) -> MockSupabaseResponse:
        if self._table.fail_with is not None:
            raise self._table.fail_with

        if self._action == "insert":
            if self._table.fail_on_insert is not None:
                raise self._table.fail_on_insert
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            return MockSupabaseResponse([self._table.put(row) for row in payload])

        rows = self._matching()

        if self._action == "update":
            updated = []
            for row in rows:
                candidate = {**row, **self._payload}
                self._table.check_unique(candidate, ignore_id=row["id"])
                row.update(self._payload)
                updated.append(dict(row))
            return MockSupabaseResponse(updated)

        if self._action == "delete":
            for row in rows:
                self._table.rows.pop(row["id"])
            return MockSupabaseResponse([dict(row) for row in rows])

        if self._range is not None:
            start, end = self._range
            rows = rows[start : end + 1]
        if self._limit is not None:
            rows = rows[: self._limit]
        return MockSupabaseResponse([dict(row) for row in rows])


class MockStorageBucket:
    """Mock storage bucket keeping uploaded objects in memory."""

    def __init__(self, name: str, objects: Dict[str, bytes]) -> None:
        self.name = name
        self.objects = objects
        self.fail_with: Optional[Exception] = None

    def upload(self, path: str, file: bytes, file_options: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        if self.fail_with is not None:
            raise self.fail_with
        self.objects[f"{self.name}/{path}"] = file
        return {"path": path, "fullPath": f"{self.name}/{path}"}

    def get_public_url(self, path: str) -> str:
        return f"https://storage.example.com/{self.name}/{path}"


class MockStorage:
    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.buckets: Dict[str, MockStorageBucket] = {}

    def from_(self, bucket: str) -> MockStorageBucket:
        if bucket not in self.buckets:
            self.buckets[bucket] = MockStorageBucket(bucket, self.objects)
        return self.buckets[bucket]


class MockSupabaseClient:
    """Mock Supabase client with the indexes the production schema declares."""

    def __init__(self) -> None:
        self._tables: Dict[str, MockSupabaseTable] = {
            "voiceovers": MockSupabaseTable("voiceovers"),
            "voiceover_collaborators": MockSupabaseTable(
                "voiceover_collaborators", [UniqueIndex(("voiceover_id", "email"))]
            ),
            "users": MockSupabaseTable("users"),
            "jobs": MockSupabaseTable(
                "jobs",
                [
                    UniqueIndex(
                        ("voiceover_id",),
                        where=lambda row: row.get("status") in ("pending", "processing"),
                    )
                ],
            ),
        }
        self.storage = MockStorage()

    def table(self, name: str) -> MockQuery:
        """Start a query against a mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(name)
        return MockQuery(self._tables[name])

    def raw_table(self, name: str) -> MockSupabaseTable:
        self.table(name)
        return self._tables[name]

    def get_all_records(self, table_name: str) -> List[Dict[str, Any]]:
        """Get all records from a table (for testing)."""
        return [dict(row) for row in self.raw_table(table_name).rows.values()]

    def seed_user(self, user_id: str, email: str, name: str = "") -> None:
        self.raw_table("users").put({"id": user_id, "email": email, "name": name, "image": None})

    def seed_voiceover(self, **overrides: Any) -> Voiceover:
        fields: Dict[str, Any] = {
            "id": f"voc-{len(self.raw_table('voiceovers').rows) + 1:04d}",
            "text": "Welcome to the show.",
            "created_by": OWNER_ID,
        }
        fields.update(overrides)
        voiceover = Voiceover(**fields)
        self.raw_table("voiceovers").put(voiceover.model_dump(mode="json"))
        return voiceover


# ==================== Fake External Services ====================


class FakeTTS:
    """TextToSpeech double that records calls and returns fixed audio."""

    def __init__(self, audio: bytes = TWO_SECONDS_OF_AUDIO, error: Optional[Exception] = None) -> None:
        self.audio = audio
        self.error = error
        self.calls: List[Tuple[List[SpeakerTurn], List[VoiceConfig]]] = []

    async def synthesize(
        self, turns: List[SpeakerTurn], voice_configs: List[VoiceConfig]
    ) -> SynthesisResult:
        self.calls.append((turns, voice_configs))
        if self.error is not None:
            raise self.error
        return SynthesisResult(audio_content=self.audio)


class FakeLanguageModel:
    """LanguageModel double returning a fixed annotation."""

    def __init__(
        self,
        annotated_text: str = "[warmly] Welcome to the show.",
        title: Optional[str] = "Welcome Message",
        error: Optional[Exception] = None,
    ) -> None:
        self.annotated_text = annotated_text
        self.title = title
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, system: str, prompt: str, output_type: Any, max_tokens: int, temperature: float) -> Any:
        self.calls.append(
            {"system": system, "prompt": prompt, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.error is not None:
            raise self.error
        return PreprocessResult(annotated_text=self.annotated_text, title=self.title)


class Stack:
    """Every service wired against one mock client."""

    def __init__(
        self,
        client: Optional[MockSupabaseClient] = None,
        tts: Optional[FakeTTS] = None,
        llm: Optional[FakeLanguageModel] = None,
    ) -> None:
        self.client = client or MockSupabaseClient()
        if client is None:
            self.client.seed_user(OWNER_ID, OWNER_EMAIL, "Olive Owner")
            self.client.seed_user(ALICE_ID, ALICE_EMAIL, "Alice")
            self.client.seed_user(BOB_ID, BOB_EMAIL, "Bob")

        self.tts = tts or FakeTTS()
        self.llm = llm or FakeLanguageModel()

        self.voiceovers = VoiceoverRepository(self.client)
        self.collaborators = CollaboratorRepository(self.client)
        self.users = UserDirectory(self.client)
        self.dispatcher = JobDispatcher(self.client)
        self.storage = SupabaseStorage(self.client, bucket="voiceovers")
        self.approvals = ApprovalTracker(self.voiceovers, self.collaborators)
        self.registry = CollaboratorRegistry(self.voiceovers, self.collaborators, self.users)
        self.service = VoiceoverService(self.voiceovers, self.collaborators)
        self.orchestrator = GenerationOrchestrator(
            voiceovers=self.voiceovers,
            approvals=self.approvals,
            dispatcher=self.dispatcher,
            tts=self.tts,
            llm=self.llm,
            storage=self.storage,
        )

    def row(self, voiceover_id: str) -> Dict[str, Any]:
        return dict(self.client.raw_table("voiceovers").rows[voiceover_id])

    def jobs(self) -> List[Dict[str, Any]]:
        return self.client.get_all_records("jobs")


# ==================== Fixtures ====================


@pytest.fixture
def stack() -> Stack:
    """Fresh service stack over an empty in-memory database."""
    return Stack()


@pytest.fixture
def failing_tts_stack() -> Stack:
    """Stack whose TTS provider is down."""
    return Stack(tts=FakeTTS(error=TTSError("TTS service unavailable")))


@pytest.fixture
def failing_llm_stack() -> Stack:
    """Stack whose language model always errors."""
    return Stack(llm=FakeLanguageModel(error=LLMError("model overloaded")))
