"""
Pytest configuration and fixtures for profilereview tests.
"""

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pytest
import pytest_asyncio
from PIL import Image

# Keep test runs from writing into the project's logs directory
os.environ.setdefault("PROFILEREVIEW_LOGS_DIR", tempfile.mkdtemp(prefix="profilereview-logs-"))

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from profilereview.database.db_connection import ConnectionManager  # noqa: E402
from profilereview.database.db_schema import SchemaManager  # noqa: E402


@pytest_asyncio.fixture
async def connections(tmp_path: Path):
    """An open connection manager on a fresh database with the full schema."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "test.db")
    await SchemaManager.initialize_schema(manager.connection)
    yield manager
    await manager.close()


def photo_dict(path: str, sort_order: int, is_rejected: bool = False, messages: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "path": path,
        "sortOrder": sort_order,
        "isRejected": is_rejected,
        "messages": messages or [],
    }


async def insert_user(
    manager: ConnectionManager,
    user_id: int,
    photos: Optional[List[Dict[str, Any]]] = None,
    bio: str = "",
    main_photo: Optional[str] = None,
    num_of_photos: int = 0,
) -> None:
    async with manager.transaction() as conn:
        await conn.execute(
            "INSERT INTO users (id, bio, photos, main_photo, num_of_photos) VALUES (?, ?, ?, ?, ?)",
            (user_id, bio, json.dumps(photos or []), main_photo, num_of_photos),
        )


async def insert_review(
    manager: ConnectionManager,
    user_id: int,
    review_type: str = "full",
    created_at: str = "2024-01-01 00:00:00",
    needs_human_review: Optional[int] = None,
) -> None:
    async with manager.transaction() as conn:
        await conn.execute(
            "INSERT INTO user_reviews (user_id, review_type, needs_human_review, created_at) VALUES (?, ?, ?, ?)",
            (user_id, review_type, needs_human_review, created_at),
        )


def make_pattern_image(seed: int, size: int = 96) -> Image.Image:
    """A noisy RGB image; different seeds give structurally unrelated images."""
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(size, size, 3), dtype=np.uint8)
    return Image.fromarray(pixels, mode="RGB")


def image_bytes(image: Image.Image, fmt: str = "PNG") -> bytes:
    from io import BytesIO

    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def clean_response(**overrides: Any) -> Dict[str, Any]:
    """A successful vendor response for an unremarkable selfie."""
    response: Dict[str, Any] = {
        "status": "success",
        "nudity": {"sexual_activity": 0.01, "sexual_display": 0.01, "erotica": 0.01,
                   "very_suggestive": 0.01, "suggestive": 0.02, "none": 0.97},
        "weapon": {"classes": {"firearm": 0.01, "firearm_gesture": 0.01, "firearm_toy": 0.01, "knife": 0.01}},
        "gore": {"prob": 0.01, "classes": {"very_bloody": 0.01}},
        "violence": {"prob": 0.01, "classes": {"physical_violence": 0.01}},
        "scam": {"prob": 0.01},
        "type": {"ai_generated": 0.01, "illustration": 0.02, "photo": 0.98},
        "faces": [{"attributes": {"minor": 0.02, "sunglasses": 0.01}}],
    }
    response.update(overrides)
    return response
