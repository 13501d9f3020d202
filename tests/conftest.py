import pytest
import httpx

from mypi.fetch.base import FetchResult


@pytest.fixture(autouse=True)
def isolated_agent_dir(tmp_path, monkeypatch):
    """Point config discovery at an empty temp dir so ~/.pi is never read"""
    agent_dir = tmp_path / "agent"
    agent_dir.mkdir()
    monkeypatch.setenv("PI_CODING_AGENT_DIR", str(agent_dir))
    return agent_dir


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served"""

    def __init__(self, handler):
        self.requests = []

        def recording_handler(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


def html_result(body, status_code=200, content_type="text/html; charset=utf-8"):
    return FetchResult(body=body, content_type=content_type, status_code=status_code)


ARTICLE_HTML = """
<html>
<head><title>Why Regression Tests Matter</title></head>
<body>
    <nav><a href="/">Home</a> | <a href="/blog">Blog</a> | <a href="/about">About</a></nav>
    <article>
        <h1>Why Regression Tests Matter</h1>
        <p>Regression tests pin down behaviour that users already rely on, so that a
        refactoring which looks harmless cannot quietly change what the program does.</p>
        <p>Teams that keep a small, fast regression suite next to the code find that
        they can ship changes with more confidence and spend less time debugging.</p>
    </article>
    <footer>Copyright 2026 Example Blog</footer>
</body>
</html>
"""

NAV_ONLY_HTML = """
<html>
<head><title>Example</title></head>
<body>
    <nav><ul><li><a href="/">Home</a></li><li><a href="/blog">Blog</a></li></ul></nav>
    <footer>Contact</footer>
</body>
</html>
"""
