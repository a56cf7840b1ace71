from pathlib import Path
from typing import Dict, List, Tuple, Union

import pytest
import requests

from hubble_birthday.browser import RenderedPage
from hubble_birthday.config import CrawlConfig

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01" + b"\x00" * 256
PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n" + b" " * 128

DETAIL_PAGE = """
<html><body>
<h1>Hubble Views a Grand Spiral</h1>
<article>
  <p>1 min read</p>
  <p>This Hubble image shows a spiral galaxy with sweeping arms of young blue stars.</p>
</article>
<ul class="facts">
  <li><div>Object Name</div><div>NGC 1234</div></li>
  <li><div>Object Description</div><div>Spiral Galaxy</div></li>
  <li><div>Release Date</div><div>March 5, 2021</div></li>
  <li><div>Constellation</div><div>Eridanus</div></li>
  <li><div>Distance</div><div>60 million light-years</div></li>
  <li><div>Instrument</div><div>ACS</div></li>
  <li><div>Exposure Dates</div><div>March 2004</div></li>
  <li><div>Filters</div><div>F435W, F814W</div></li>
  <li><div>Credit</div><div>NASA, ESA</div></li>
  <li><div>Keywords</div><div>Galaxies</div></li>
</ul>
<h3>Downloads</h3>
<p>Click an image to download.</p>
<ul>
  <li><a href="/files/ngc1234-full.jpg">Full Res, 3000 x 2400 (2.1 MB)</a></li>
  <li><a href="/files/ngc1234.pdf">Full Res PDF (12 MB)</a></li>
</ul>
</body></html>
"""

NEWS_PAGE = """
<html><body>
<h1>Hubble Celebrates Another Year</h1>
<article><p>A short news post with no downloads list of its own at all here.</p></article>
<a href="/asset/hubble/ngc-1234/">Download Image</a>
</body></html>
"""

NARRATIVE_PAGE = """
<html><body>
<h1>Spiral Story</h1>
<article>
  <p>2 min read</p>
  <p>Hubble captured this spiral galaxy in exquisite detail, revealing dusty lanes.</p>
  <p>Bright pink regions mark nurseries where new stars are forming in large numbers.</p>
  <img src="https://cdn.example.com/logo.png">
  <img src="/wp-content/uploads/hubble-ngc1234.jpg">
</article>
<a href="/category/galaxies/">Galaxies</a>
<a href="https://science.nasa.gov/universe/stars/">Stars</a>
<a href="/category/galaxies/">Galaxies</a>
<a href="/about/">About</a>
<ul><li>Science Release Hubble Finds a Spiral Read the release</li></ul>
<div class="color"><p>Color Info: These images are composites. The assigned colors are: blue (F435W), red (F814W)</p></div>
</body></html>
"""


class FakeFetcher:
    """In-process stand-in for the browser page fetcher."""

    def __init__(self, pages: Dict[str, Tuple[str, str]]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    async def fetch(self, url: str, settle: float = 0.0) -> RenderedPage:
        self.calls.append(url)
        if url not in self.pages:
            raise RuntimeError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        final_url, html = self.pages[url]
        return RenderedPage(url=final_url, html=html)


def make_response(
    url: str,
    status: int = 200,
    body: bytes = JPEG_BYTES,
    content_type: str = "image/jpeg",
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.headers["Content-Type"] = content_type
    resp.url = url
    resp.reason = "OK" if status < 400 else "Error"
    return resp


Outcome = Union[requests.Response, Exception]


class FakeSession:
    """Returns queued outcomes per URL; the last outcome repeats."""

    def __init__(self, routes: Dict[str, List[Outcome]]) -> None:
        self.routes = {url: list(outcomes) for url, outcomes in routes.items()}
        self.calls: List[str] = []

    def get(self, url: str, timeout: float = None) -> requests.Response:
        self.calls.append(url)
        outcomes = self.routes.get(url)
        if not outcomes:
            raise requests.ConnectionError(f"no route for {url}")
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        pass


@pytest.fixture
def config(tmp_path: Path) -> CrawlConfig:
    return CrawlConfig(
        output_root=tmp_path / "dumps",
        wait_after_load=0.0,
        enrich_wait_after_load=0.0,
        record_delay=0.0,
        enrich_delay=0.0,
        retry_backoff=0.0,
    )
