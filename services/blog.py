import json
import logging
import os
import re
import time
import uuid
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple

import httpx
from openai import OpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.blog import BlogPost
from schemas.blog import BlogResponse, GeneratedBlog, GenerationResult
from services.upload import build_object_key
from storage.base import BaseStorage
from utill.engagement import bump_counter
from utils.exceptions import InternalError, NotFoundError

logger = logging.getLogger(__name__)

OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-5")
OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")
IMAGE_MAX_RETRIES = 3
BLOG_IMAGE_PREFIX = "blogs/"

PROMPT_TEMPLATE = """You are the financial news curator for "FinLook", an Indian fintech and financial education platform.
Find 2-5 high-quality, finance-focused Indian news stories from the last 24 hours (today: {today}). Aim for 5.
{category_rules}
Prioritise banking and RBI policy, fintech and digital payments, stock markets, IPOs and mutual funds, then
startups, economic policy and corporate earnings. Prefer reputable outlets (Economic Times, Mint, Business
Standard, Moneycontrol, Reuters, Bloomberg).

For each story return an object with these keys:
title, summary (2-3 sentences), content (800-1200 word article), published_at (ISO timestamp),
source_name, source_url, tags (1-4 strings), region (list), companies (list), sector,
financial_impact, key_numbers (object of label -> value), image_prompt (a detailed editorial image prompt).

Rules: source_name and source_url are the only places the source may appear. No URLs, markdown links or
citations in title, summary or content. Never return image URLs, only image_prompt.

Return only a JSON array of the stories."""

CATEGORY_RULES = """
Existing categories: {categories}.
Use one of them exactly when the story fits; create a new category only when none fits, and never a near-duplicate.
"""

IMAGE_PROMPT_TEMPLATE = (
    "Professional, clean, editorial-style image for a financial news article about: {prompt}. "
    "Style: Modern, business-appropriate, no text or watermarks, suitable for a financial news platform."
)


def get_existing_categories(db: Session) -> List[str]:
    rows = db.query(BlogPost.sector).filter(BlogPost.is_active == True).distinct().all()
    return sorted(sector for (sector,) in rows if sector)


def build_prompt(categories: List[str], today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    category_rules = CATEGORY_RULES.format(categories=", ".join(categories)) if categories else ""
    return PROMPT_TEMPLATE.format(today=today.isoformat(), category_rules=category_rules)


def parse_stories(text: str) -> List[GeneratedBlog]:
    """Pulls the JSON array out of the model's answer; malformed stories are dropped."""
    match = re.search(r"\[[\s\S]*\]", text or "")
    if not match:
        raise InternalError("No valid JSON found in AI response")
    try:
        raw = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise InternalError(f"AI response is not valid JSON: {e}")

    stories = []
    for item in raw:
        try:
            stories.append(GeneratedBlog.model_validate(item))
        except PydanticValidationError as e:
            logger.warning("Skipping malformed story: %s", e.errors())
    return stories


class BlogGenerator:
    """Daily blog pipeline: curate stories with web search, illustrate them, persist them."""

    def __init__(
        self,
        client: OpenAI,
        storage: BaseStorage,
        http_client: Optional[httpx.Client] = None,
        chat_model: str = OPENAI_CHAT_MODEL,
        image_model: str = OPENAI_IMAGE_MODEL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.storage = storage
        self.http_client = http_client or httpx.Client(timeout=60.0, follow_redirects=True)
        self.chat_model = chat_model
        self.image_model = image_model
        self.sleep = sleep

    def fetch_stories(self, categories: List[str]) -> List[GeneratedBlog]:
        response = self.client.responses.create(
            model=self.chat_model,
            tools=[{"type": "web_search"}],
            input=build_prompt(categories),
        )
        stories = parse_stories(response.output_text)
        logger.info("Parsed %d blog stories", len(stories))
        return stories

    def generate_image(self, prompt: str, title: str) -> Optional[str]:
        """Returns the stored image URL, or None once every attempt has failed."""
        for attempt in range(1, IMAGE_MAX_RETRIES + 1):
            try:
                logger.info("Generating image for %r (attempt %d/%d)", title, attempt, IMAGE_MAX_RETRIES)
                result = self.client.images.generate(
                    model=self.image_model,
                    prompt=IMAGE_PROMPT_TEMPLATE.format(prompt=prompt),
                    n=1,
                    size="1024x1024",
                    quality="standard",
                )
                image_url = result.data[0].url if result.data else None
                if not image_url:
                    logger.warning("No image URL returned for %r", title)
                    return None

                download = self.http_client.get(image_url)
                download.raise_for_status()
                key = build_object_key(BLOG_IMAGE_PREFIX, "image/png")
                return self.storage.upload_bytes(download.content, key, "image/png")
            except (OpenAIError, httpx.HTTPError, OSError) as e:
                logger.error("Image attempt %d failed for %r: %s", attempt, title, e)
                if attempt < IMAGE_MAX_RETRIES:
                    self.sleep(2 ** attempt)
        logger.error("All %d image attempts failed for %r", IMAGE_MAX_RETRIES, title)
        return None

    def save_blogs(self, db: Session, stories: List[GeneratedBlog], images: dict) -> Tuple[int, int]:
        saved = failed = 0
        for story in stories:
            image_url = images.get(story.title)
            blog = BlogPost(
                title=story.title,
                summary=story.summary,
                content=story.content,
                published_at=story.published_at or datetime.now(timezone.utc),
                source_name=story.source_name,
                source_url=story.source_url,
                tags=story.tags,
                region=story.region,
                companies=story.companies,
                sector=story.sector,
                financial_impact=story.financial_impact,
                key_numbers=story.key_numbers,
            )
            if image_url:
                blog.image_url = image_url
                blog.image_source = self.image_model
                blog.image_attribution = "Generated by DALL-E 3"
                blog.image_license = "AI Generated"
                blog.image_alt_text = (story.image_prompt or "")[:200]
            try:
                db.add(blog)
                db.commit()
                saved += 1
            except SQLAlchemyError as e:
                db.rollback()
                failed += 1
                logger.error("Failed to save blog %r: %s", story.title, e)
        return saved, failed

    def run(self, db: Session) -> GenerationResult:
        stories = self.fetch_stories(get_existing_categories(db))

        images = {}
        for story in stories:
            if story.image_prompt:
                images[story.title] = self.generate_image(story.image_prompt, story.title)

        saved, failed = self.save_blogs(db, stories, images)
        logger.info("Blog generation finished: %d saved, %d failed", saved, failed)
        if saved == 0 and failed > 0:
            raise InternalError("Failed to save any blogs")
        return GenerationResult(generated=len(stories), saved=saved, failed=failed)


# ---------------------- 조회 ----------------------
def get_all_blogs(db: Session, limit: int, offset: int) -> Tuple[List[BlogResponse], int]:
    query = db.query(BlogPost).filter(BlogPost.is_active == True)
    total = db.query(func.count(BlogPost.id)).filter(BlogPost.is_active == True).scalar()
    blogs = query.order_by(BlogPost.published_at.asc()).offset(offset).limit(limit).all()
    return [BlogResponse.model_validate(b) for b in blogs], total


def get_blog_by_id(db: Session, blog_id: uuid.UUID) -> BlogResponse:
    blog = db.query(BlogPost).filter(BlogPost.id == blog_id, BlogPost.is_active == True).first()
    if not blog:
        raise NotFoundError("Blog not found")
    bump_counter(db, BlogPost, blog.id, "views", 1)
    db.commit()
    db.refresh(blog)
    return BlogResponse.model_validate(blog)
