import asyncio
import json
from types import SimpleNamespace

import fitz
import httpx
import pytest

from question_extractor.extraction_invoker import ExtractionInvoker


class FakeQuery:

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.ops = []

    def select(self, columns):
        self.ops.append(("select", columns))
        return self

    def order(self, column, desc=False):
        self.ops.append(("order", column))
        return self

    def insert(self, rows):
        self.ops.append(("insert", rows))
        self.db.inserts.append((self.table, rows))
        return self

    def execute(self):
        if self.db.fail_on == self.table:
            raise RuntimeError(f"relation \"{self.table}\" does not exist")
        if any(op == "insert" for op, _ in self.ops):
            return SimpleNamespace(data=[dict(r) for r in self.db.inserts[-1][1]])
        return SimpleNamespace(data=self.db.rows.get(self.table, []))


class FakeSupabase:
    """Records inserts and serves canned rows for selects."""

    def __init__(self, rows=None, fail_on=None):
        self.rows = rows or {}
        self.inserts = []
        self.fail_on = fail_on

    def table(self, name):
        return FakeQuery(self, name)


def completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def question(number="1", statement="What is $x^2$?", qtype="MCQ", **extra):
    item = {
        "question_number": number,
        "question_statement": statement,
        "question_type": qtype,
        "options": ["A) 1", "B) 2", "C) 3", "D) 4"] if qtype in ("MCQ", "MSQ") else None,
        "has_image": False,
    }
    item.update(extra)
    return item


class FakeOpenAI:
    """
    Serves one scripted reply per request. A reply is either an
    httpx.Response, or any other value which is JSON encoded (strings are
    used as-is) and wrapped as the completion content.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    def handler(self, request):
        self.requests.append(request)
        reply = self.replies[len(self.requests) - 1]
        if isinstance(reply, httpx.Response):
            return reply
        content = reply if isinstance(reply, str) else json.dumps(reply)
        return completion(content)

    @property
    def keys_used(self):
        return [r.headers["Authorization"].replace("Bearer ", "") for r in self.requests]

    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


class SleepRecorder:

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def make_invoker(fake_openai, api_keys, sleep=None, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_openai.handler))
    return ExtractionInvoker(api_keys, http_client=client, sleep=sleep or SleepRecorder(), **kwargs)


def run(coro):
    return asyncio.run(coro)


def make_pdf(pages=1):
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"{i + 1}. What is {i + 1} + {i + 1}?")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def fake_db():
    return FakeSupabase(rows={
        "courses": [{"id": "c1", "name": "Physics"}],
        "exams": [{"id": "JEE"}],
    })
