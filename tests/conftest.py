import io
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, text

from pollify.rows import Row


class FakePollyClient:
    def __init__(self, audio_by_text=None, failures=None):
        self.audio_by_text = audio_by_text or {}
        self.failures = failures or {}
        self.calls = []

    def synthesize_speech(self, **params):
        self.calls.append(params)
        error = self.failures.get(params["Text"])
        if error is not None:
            raise error
        audio = self.audio_by_text.get(params["Text"], f"mp3:{params['Text']}".encode())
        return {"AudioStream": io.BytesIO(audio), "ContentType": "audio/mpeg"}


class FakeS3Client:
    def __init__(self):
        self.objects = {}

    def put_object(self, *, Bucket, Key, Body):
        self.objects[(Bucket, Key)] = Body
        return {"ETag": '"etag"'}


class FakeSession:
    def __init__(self, polly=None, s3=None):
        self.clients = {"polly": polly or FakePollyClient(), "s3": s3 or FakeS3Client()}

    def client(self, service_name):
        return self.clients[service_name]


@pytest.fixture
def polly_client():
    return FakePollyClient()


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def source_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'source.db'}")
    with engine.begin() as conn:
        conn.execute(
            text("CREATE TABLE notes (note_id INTEGER PRIMARY KEY, body TEXT, updated_at TIMESTAMP)")
        )
        conn.execute(
            text("INSERT INTO notes (note_id, body, updated_at) VALUES (:id, :body, :updated)"),
            [
                {"id": 1, "body": "a", "updated": "2024-03-01 10:00:00"},
                {"id": 2, "body": "b", "updated": "2024-03-01 11:00:00"},
                {"id": 3, "body": "c", "updated": "2024-03-01 12:00:00"},
            ],
        )
    yield engine
    engine.dispose()


@pytest.fixture
def sample_rows():
    return [
        Row(id=1, text="a", last_update=datetime(2024, 3, 1, 10, tzinfo=timezone.utc)),
        Row(id=2, text="b", last_update=datetime(2024, 3, 1, 11, tzinfo=timezone.utc)),
        Row(id=3, text="c", last_update=datetime(2024, 3, 1, 12, tzinfo=timezone.utc)),
    ]
