"""Citation normalizer — turns raw source URLs into display-ready citations.

The author and title guesses are cosmetic: they are inferred from the shape
of the URL alone and must never be treated as bibliographic ground truth.
Output depends only on the input URLs.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote, urlsplit

from litreview.models.citation import SENTINEL_CITATION, Citation

logger = logging.getLogger(__name__)

_TLD_SUFFIX = re.compile(r"\.(com|org|edu|gov|net)$", re.IGNORECASE)
_PMC_ID = re.compile(r"PMC(\d+)", re.IGNORECASE)
_PUBMED_ID = re.compile(r"pubmed(?:\.ncbi\.nlm\.nih\.gov)?/(\d+)", re.IGNORECASE)
_DOI = re.compile(r"doi\.org/(.+)$", re.IGNORECASE)
_ARXIV_ID = re.compile(r"arxiv\.org/(?:abs|pdf)/(.+?)(?:\.pdf)?/?$", re.IGNORECASE)
_YEAR_SEGMENT = re.compile(r"(?:19|20)\d{2}")
_FILE_EXTENSION = re.compile(r"\.(html?|pdf|php|aspx?|jsp|xml)$", re.IGNORECASE)


def normalize_citations(urls: list[str]) -> list[Citation]:
    """Build one Citation per URL, or a single sentinel when there are none."""
    if not urls:
        return [SENTINEL_CITATION]
    return [normalize_citation(url) for url in urls]


def normalize_citation(url: str) -> Citation:
    """Build a Citation from a single URL, falling back to the raw URL."""
    raw = str(url).strip()
    try:
        parts = urlsplit(raw)
        host = (parts.hostname or "").lower()
    except ValueError:
        logger.debug("Unparseable citation URL: %r", raw)
        return Citation(authors="", text=raw, url=raw or None)

    if parts.scheme not in ("http", "https") or not host:
        return Citation(authors="", text=raw, url=raw or None)

    host = host.removeprefix("www.")
    segments = [unquote(s) for s in parts.path.split("/") if s]
    year = _year_from(segments)
    domain_name = _format_domain(host)

    identifier = ""
    publisher = ""
    if host.endswith("ncbi.nlm.nih.gov"):
        authors = "PubMed Research Group"
        publisher = "National Library of Medicine"
        pmc = _PMC_ID.search(raw)
        pubmed = _PUBMED_ID.search(raw)
        if pmc:
            title = f"PubMed Central article PMC{pmc.group(1)}"
            identifier = f"PubMed/PMC Article ID: {pmc.group(1)}"
        elif pubmed:
            title = f"PubMed article {pubmed.group(1)}"
            identifier = f"PubMed/PMC Article ID: {pubmed.group(1)}"
        else:
            title = _title_from(segments) or "Biomedical literature record"
    elif host.endswith("doi.org"):
        authors = "Scientific Research Group"
        publisher = "Digital Object Identifier Foundation"
        doi = _DOI.search(raw)
        doi_value = unquote(doi.group(1)) if doi else ""
        if doi_value:
            identifier = f"DOI: {doi_value}"
        title = _title_from(doi_value.split("/")[1:]) or "Registered scholarly publication"
    elif host.endswith("arxiv.org"):
        authors = "arXiv Contributors"
        publisher = "arXiv"
        arxiv = _ARXIV_ID.search(raw)
        title = f"arXiv preprint {arxiv.group(1)}" if arxiv else "arXiv preprint"
    elif host.endswith("nature.com"):
        authors = "Nature Research Group"
        publisher = "Nature Publishing Group"
        title = _title_from(segments) or "Nature article"
    elif host.endswith("sciencedirect.com") or host.endswith("elsevier.com"):
        authors = "Elsevier Publishing Group"
        publisher = "Elsevier"
        title = _title_from(segments) or "ScienceDirect article"
    elif host == "scholar.google.com":
        authors = "Google Scholar"
        publisher = "Google Scholar"
        title = "Scholarly search results"
    else:
        authors = f"{domain_name} Research Team"
        title = _title_from(segments) or f"Resource from {domain_name}"

    text = f"({year}). {title}. "
    if identifier:
        text += f"{identifier}. "
    if publisher:
        text += f"{publisher}. "
    text += f"Retrieved from {raw}"
    return Citation(authors=authors, text=text, url=raw)


def _format_domain(host: str) -> str:
    """'journals.example.org' -> 'Journals Example'."""
    name = _TLD_SUFFIX.sub("", host)
    return " ".join(part[:1].upper() + part[1:] for part in name.split(".") if part)


def _year_from(segments: list[str]) -> str:
    for segment in segments:
        if _YEAR_SEGMENT.fullmatch(segment):
            return segment
    return "n.d."


def _title_from(segments: list[str]) -> str | None:
    """Humanize the last descriptive path segment, if any."""
    for segment in reversed(segments):
        words = _FILE_EXTENSION.sub("", segment)
        words = re.sub(r"[-_+]+", " ", words)
        words = re.sub(r"\d+", " ", words)
        words = re.sub(r"[^\w\s]", " ", words)
        words = " ".join(words.split())
        if len(words) > 3:
            return words[:1].upper() + words[1:]
    return None
