"""Pytest configuration and fixtures for E2E tests.

Run against a live server with the guide loaded and a Gemini key set:
    hypercorn guide_qa.main:app --bind 0.0.0.0:5001
    pytest -m e2e tests/e2e
"""
import pytest
from playwright.sync_api import Page, expect


# Test configuration
BASE_URL = "http://localhost:5001"
TEST_TIMEOUT = 30000  # 30 seconds


# Note: pytest-playwright provides these built-in options:
# --headed: Run tests in headed mode (visible browser)
# --slowmo: Slow down operations by N milliseconds
# --browser: Choose browser (chromium, firefox, webkit)
# --video: Record video (on, off, retain-on-failure)


@pytest.fixture
def chat_page(page: Page) -> Page:
    """Navigate to the chat page and wait for the guide to finish loading."""
    page.goto(BASE_URL)
    page.wait_for_load_state("networkidle")
    page.set_default_timeout(TEST_TIMEOUT)
    expect(page.locator('#chat-input')).to_be_enabled(timeout=60000)
    return page


@pytest.fixture
def test_message():
    """Question answered by the guide."""
    return "When is the admission deadline?"


@pytest.fixture
def off_topic_message():
    """Question the guide cannot answer."""
    return "Who won the 1998 football world cup?"
