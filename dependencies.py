import os
from functools import lru_cache
from fastapi import Depends
import redis
from openai import OpenAI

from storage.base import BaseStorage
from storage.local import LocalStorage
from storage.s3 import S3Storage

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


@lru_cache(maxsize=1)
def get_storage_manager_instance() -> BaseStorage:
    storage_type = os.getenv("STORAGE_TYPE", "local")
    if storage_type == "s3":
        return S3Storage()
    elif storage_type == "local":
        return LocalStorage()
    else:
        raise ValueError(f"Unknown storage type: {storage_type}")

def get_storage_manager(storage: BaseStorage = Depends(get_storage_manager_instance)) -> BaseStorage:
    return storage


@lru_cache(maxsize=1)
def get_cache_instance() -> redis.Redis:
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)

def get_cache(cache: redis.Redis = Depends(get_cache_instance)) -> redis.Redis:
    return cache


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAI:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError("OPENAI_API_KEY is not set.")
    return OpenAI(api_key=api_key)


@lru_cache(maxsize=1)
def get_blog_scheduler():
    # imported lazily: the scheduler module pulls in the generator and the session factory
    from utils.scheduler import DailyBlogScheduler
    return DailyBlogScheduler()
