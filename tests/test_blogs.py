import json
import threading
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest
from openai import OpenAIError

from dependencies import get_blog_scheduler
from models import BlogPost
from services.blog import BlogGenerator, build_prompt, get_existing_categories, parse_stories
from utils.exceptions import ConflictError, InternalError
from utils.scheduler import DailyBlogScheduler

IMAGE_URL = "https://images.example.com/generated.png"


def _story(title, **fields):
    story = {
        "title": title,
        "summary": "RBI keeps the repo rate unchanged.",
        "content": "The Reserve Bank of India held the repo rate at 6.5% ...",
        "published_at": "2026-10-18T09:30:00Z",
        "source_name": "Mint",
        "source_url": "https://www.livemint.com/economy/rbi-policy",
        "tags": ["RBI", "Monetary Policy"],
        "region": "India",
        "companies": [],
        "sector": "Banking",
        "financial_impact": "Neutral for bank stocks",
        "key_numbers": {"repo_rate": "6.5%"},
        "image_prompt": "Reserve Bank of India building at dusk",
    }
    story.update(fields)
    return story


class FakeImages:
    def __init__(self, failures=0):
        self.failures = failures
        self.calls = []

    def generate(self, **kwargs):
        self.calls.append(kwargs)
        if len(self.calls) <= self.failures:
            raise OpenAIError("image service unavailable")
        return SimpleNamespace(data=[SimpleNamespace(url=IMAGE_URL)])


class FakeResponses:
    def __init__(self, output_text):
        self.output_text = output_text
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(output_text=self.output_text)


def _fake_client(stories=None, text=None, image_failures=0):
    text = text if text is not None else "Here are today's stories:\n" + json.dumps(stories or [])
    return SimpleNamespace(responses=FakeResponses(text), images=FakeImages(image_failures))


def _image_http_client():
    return httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"\x89PNG")))


@pytest.fixture
def sleeps():
    return []


def _generator(client, storage, sleeps):
    return BlogGenerator(client, storage, http_client=_image_http_client(), sleep=sleeps.append)


def test_parse_stories_extracts_array_and_skips_malformed():
    text = "Sure! " + json.dumps([_story("RBI holds rates"), {"title": "missing content"}]) + " Done."
    stories = parse_stories(text)
    assert [s.title for s in stories] == ["RBI holds rates"]
    assert stories[0].region == ["India"]
    assert stories[0].published_at == datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def test_parse_stories_without_json_fails():
    with pytest.raises(InternalError) as exc:
        parse_stories("I could not find any news today.")
    assert exc.value.message == "No valid JSON found in AI response"


def test_prompt_lists_existing_categories(db):
    db.add_all([
        BlogPost(title="a", content="a", sector="Banking"),
        BlogPost(title="b", content="b", sector="Fintech"),
        BlogPost(title="c", content="c", sector="Banking"),
    ])
    db.commit()

    categories = get_existing_categories(db)
    assert categories == ["Banking", "Fintech"]
    prompt = build_prompt(categories, datetime(2026, 10, 19).date())
    assert "Banking, Fintech" in prompt
    assert "2026-10-19" in prompt


def test_run_saves_stories_with_images(db, storage, sleeps):
    client = _fake_client([_story("RBI holds rates"), _story("UPI crosses 15bn", sector="Fintech")])
    result = _generator(client, storage, sleeps).run(db)

    assert (result.generated, result.saved, result.failed) == (2, 2, 0)
    assert client.responses.calls[0]["tools"] == [{"type": "web_search"}]
    blogs = db.query(BlogPost).order_by(BlogPost.title).all()
    assert [b.title for b in blogs] == ["RBI holds rates", "UPI crosses 15bn"]
    blog = blogs[0]
    assert blog.image_url.startswith("/uploads/blogs/")
    assert blog.image_attribution == "Generated by DALL-E 3"
    assert blog.image_license == "AI Generated"
    assert blog.image_alt_text == "Reserve Bank of India building at dusk"
    assert blog.source_name == "Mint"
    assert blog.key_numbers == {"repo_rate": "6.5%"}
    assert sleeps == []


def test_image_retries_with_exponential_backoff(db, storage, sleeps):
    client = _fake_client([_story("RBI holds rates")], image_failures=2)
    _generator(client, storage, sleeps).run(db)

    assert len(client.images.calls) == 3
    assert sleeps == [2, 4]
    assert db.query(BlogPost).one().image_url is not None


def test_blog_saved_without_image_after_all_attempts_fail(db, storage, sleeps):
    client = _fake_client([_story("RBI holds rates")], image_failures=3)
    result = _generator(client, storage, sleeps).run(db)

    assert result.saved == 1
    assert sleeps == [2, 4]
    blog = db.query(BlogPost).one()
    assert blog.image_url is None
    assert blog.image_attribution is None


def test_run_without_json_raises(db, storage, sleeps):
    client = _fake_client(text="Markets were quiet today.")
    with pytest.raises(InternalError):
        _generator(client, storage, sleeps).run(db)
    assert db.query(BlogPost).count() == 0


def test_scheduler_refuses_overlapping_runs(session_factory, storage):
    started, release = threading.Event(), threading.Event()

    class SlowGenerator:
        def run(self, db):
            started.set()
            release.wait(5)
            return "done"

    scheduler = DailyBlogScheduler(session_factory=session_factory, generator_factory=SlowGenerator)
    worker = threading.Thread(target=scheduler.run_now)
    worker.start()
    assert started.wait(5)

    assert scheduler.is_running
    with pytest.raises(ConflictError):
        scheduler.run_now()
    # the cron path skips instead of raising
    scheduler._scheduled_run()

    release.set()
    worker.join(5)
    assert not scheduler.is_running


def test_list_and_read_blogs(client, db):
    now = datetime.now(timezone.utc)
    older = BlogPost(title="older", content="x", published_at=now - timedelta(days=1))
    newer = BlogPost(title="newer", content="y", published_at=now)
    hidden = BlogPost(title="hidden", content="z", published_at=now, is_active=False)
    db.add_all([older, newer, hidden])
    db.commit()

    body = client.get("/api/blogs", params={"limit": 1}).json()["data"]
    assert body["total"] == 2
    assert body["hasMore"] is True
    assert [b["title"] for b in body["blogs"]] == ["older"]

    body = client.get("/api/blogs", params={"limit": 1, "offset": 1}).json()["data"]
    assert body["hasMore"] is False

    response = client.get(f"/api/blogs/{older.id}")
    assert response.status_code == 200
    assert response.json()["data"]["blog"]["views"] == 1
    assert client.get(f"/api/blogs/{older.id}").json()["data"]["blog"]["views"] == 2

    assert client.get(f"/api/blogs/{hidden.id}").status_code == 404


def test_generate_endpoint(client, session_factory, storage, make_user, auth_header, sleeps):
    fake = _fake_client([_story("RBI holds rates")])
    scheduler = DailyBlogScheduler(
        session_factory=session_factory,
        generator_factory=lambda: _generator(fake, storage, sleeps),
    )
    client.app.dependency_overrides[get_blog_scheduler] = lambda: scheduler

    assert client.post("/api/blogs/generate", headers=auth_header(make_user())).status_code == 403

    admin = make_user(role="admin")
    response = client.post("/api/blogs/generate", headers=auth_header(admin))
    assert response.status_code == 200
    assert response.json()["data"] == {"generated": 1, "saved": 1, "failed": 0}
    assert client.get("/api/blogs").json()["data"]["total"] == 1
