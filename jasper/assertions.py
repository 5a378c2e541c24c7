"""Page level assertion helpers.

Mappings are walked in insertion order, one assertion per entry.
"""

import json
from typing import Dict, Iterable, Optional

from jasper.core.browser import Condition

META_TAG_SCRIPT = """(() => {
    const tag = document.querySelector('meta[name="' + %s + '"]');
    return tag ? tag.content : false;
})()"""


class AssertionsMixin:
    """Assertion helpers for the runner, recorded through self.test."""

    async def assert_selectors(self, selectors: Dict[str, str]) -> None:
        """Assert that each {description: selector} exists on the page."""
        for description, selector in selectors.items():
            await self.test.assert_exists(
                selector,
                f'{description} "{selector}" should exist on the page'
            )

    async def assert_cookies(self, cookies: Iterable[str]) -> None:
        """Assert that each named cookie is set with a value."""
        jar = await self.engine.get_cookies()
        for cookie_name in cookies:
            cookie_value = None
            for cookie in jar:
                if cookie["name"] == cookie_name:
                    cookie_value = cookie["value"]
            await self.test.assert_(bool(cookie_value), f'Cookie "{cookie_name}" should exist')

    async def assert_meta_tags(self, tags: Dict[str, Optional[str]]) -> None:
        """Assert {name: expected content}; an empty expectation only checks existence."""
        for tag_name, expected in tags.items():
            await self.assert_meta_tag(expected, tag_name)

    async def assert_meta_tag(self, expected_tag_value: Optional[str], tag_name: str) -> None:
        found_tag_value = await self.engine.evaluate(META_TAG_SCRIPT % json.dumps(tag_name))
        if expected_tag_value:
            await self.test.assert_equals(
                found_tag_value,
                expected_tag_value,
                f'Meta tag "{tag_name}" should equal "{expected_tag_value}"'
            )
        else:
            await self.test.assert_(bool(found_tag_value), f'Meta tag "{tag_name}" should exist')

    async def assert_redirects(self, redirects: Dict[str, str]) -> None:
        """Assert that each {start: destination} url redirects."""
        for start, destination in redirects.items():
            await self.assert_redirect(destination, start)

    async def assert_redirect(self, destination: str, start: str) -> None:
        await self.engine.open(start)

        async def landed():
            return await self.engine.current_url() == destination

        async def then():
            await self.test.assert_eval_equals(
                "document.location.href",
                destination,
                f"{start} should redirect to {destination}"
            )

        async def on_timeout():
            await self.test.fail(f"Timeout: {start} should redirect to {destination}")

        await self.wait_for(landed, then, on_timeout, self.settings.timeouts.remote_site_timeout)

    async def assert_remote_resources(self, resources: Iterable[str]) -> None:
        for resource in resources:
            await self.assert_remote_resource(resource)

    async def assert_remote_resource(self, resource: str) -> None:
        await self.engine.open(resource)
        await self.test.assert_http_status(
            200,
            f"{resource} should return a 200 OK HTTP response code."
        )

    async def assert_text_on_pages(self, pages: Dict[str, str]) -> None:
        """Assert that each {page: text} page contains its text."""
        for page, text in pages.items():
            await self.assert_text_on_page(text, page)

    async def assert_text_on_page(self, text: str, page: str) -> None:
        await self.engine.open(page)
        await self.test.assert_text_exists(text, f'{page} should contain "{text}"')

    async def custom_assertions(self, assertions: Dict[str, Condition]) -> None:
        """Assert that each {description: expression} evaluates truthy."""
        for description, assertion in assertions.items():
            await self.test.assert_eval(assertion, description)
