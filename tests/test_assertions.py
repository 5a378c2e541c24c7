"""Tests for page level assertion helpers."""

import pytest


def messages(jasper):
    return [(r.success, r.message) for r in jasper.test.results]


@pytest.mark.asyncio
async def test_assert_selectors(jasper, mock_engine):
    """Test one assertion per selector."""
    mock_engine.exists.side_effect = lambda selector: selector == "h1"

    await jasper.assert_selectors({"Main heading": "h1", "Footer": "footer"})

    assert messages(jasper) == [
        (True, 'Main heading "h1" should exist on the page'),
        (False, 'Footer "footer" should exist on the page'),
    ]


@pytest.mark.asyncio
async def test_assert_cookies(jasper, mock_engine):
    """Test cookies need a non-empty value."""
    mock_engine.get_cookies.return_value = [
        {"name": "sid", "value": "abc"},
        {"name": "empty", "value": ""},
    ]

    await jasper.assert_cookies(["sid", "empty", "missing"])

    assert messages(jasper) == [
        (True, 'Cookie "sid" should exist'),
        (False, 'Cookie "empty" should exist'),
        (False, 'Cookie "missing" should exist'),
    ]
    assert jasper.context.exit_code == 1


@pytest.mark.asyncio
async def test_assert_meta_tags(jasper, mock_engine):
    """Test meta tag content and existence checks."""
    mock_engine.evaluate.side_effect = ["index,follow", False, "Example"]

    await jasper.assert_meta_tags({
        "robots": "index,follow",
        "viewport": None,
        "author": "",
    })

    assert messages(jasper) == [
        (True, 'Meta tag "robots" should equal "index,follow"'),
        (False, 'Meta tag "viewport" should exist'),
        (True, 'Meta tag "author" should exist'),
    ]
    assert '"robots"' in mock_engine.evaluate.await_args_list[0].args[0]


@pytest.mark.asyncio
async def test_assert_redirects(jasper, mock_engine):
    """Test a redirect that lands on its destination."""
    mock_engine.evaluate.return_value = "https://example.com/home"

    async def poll(condition, timeout, interval):
        return await condition()

    mock_engine.wait_for.side_effect = poll

    mock_engine.current_url.return_value = "https://example.com/home"
    await jasper.assert_redirects({"https://example.com/": "https://example.com/home"})

    mock_engine.open.assert_awaited_once_with("https://example.com/")
    assert messages(jasper) == [
        (True, "https://example.com/ should redirect to https://example.com/home"),
    ]


@pytest.mark.asyncio
async def test_assert_redirect_timeout(jasper, mock_engine, test_settings):
    """Test a redirect that never happens."""
    mock_engine.wait_for.return_value = False

    await jasper.assert_redirect("https://example.com/home", "https://example.com/")

    assert mock_engine.wait_for.await_args.args[1] == test_settings.timeouts.remote_site_timeout
    assert messages(jasper) == [
        (False, "Timeout: https://example.com/ should redirect to https://example.com/home"),
    ]
    assert jasper.context.exit_code == 1


@pytest.mark.asyncio
async def test_assert_remote_resources(jasper, mock_engine):
    """Test remote resources must answer 200."""
    statuses = iter([200, 404])

    async def open_page(url):
        mock_engine.last_status = next(statuses)

    mock_engine.open.side_effect = open_page

    await jasper.assert_remote_resources(["https://cdn.example/app.js", "https://cdn.example/gone.css"])

    assert messages(jasper) == [
        (True, "https://cdn.example/app.js should return a 200 OK HTTP response code."),
        (False, "https://cdn.example/gone.css should return a 200 OK HTTP response code."),
    ]


@pytest.mark.asyncio
async def test_assert_text_on_pages(jasper, mock_engine):
    """Test text lookups per page."""
    await jasper.assert_text_on_pages({
        "https://example.com/": "Hello",
        "https://example.com/about": "Goodbye",
    })

    assert [call.args[0] for call in mock_engine.open.await_args_list] == [
        "https://example.com/",
        "https://example.com/about",
    ]
    assert messages(jasper) == [
        (True, 'https://example.com/ should contain "Hello"'),
        (False, 'https://example.com/about should contain "Goodbye"'),
    ]


@pytest.mark.asyncio
async def test_custom_assertions(jasper, mock_engine):
    """Test JavaScript and callable assertions."""
    mock_engine.check.side_effect = [True, False]

    await jasper.custom_assertions({
        "Tracking is loaded": "typeof window.ga === 'function'",
        "Cart is empty": lambda: False,
    })

    assert messages(jasper) == [
        (True, "Tracking is loaded"),
        (False, "Cart is empty"),
    ]
