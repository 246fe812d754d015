"""Bucket catalog.

A bucket is one job-search query dispatched to the crawler as a unit of work.
The catalog is static data; the backend remains the authority on which bucket
names it accepts.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from .utils import uniq_preserve_order

logger = logging.getLogger(__name__)


# Category buckets, searched by role/experience keywords.
SCRAPE_BUCKETS = [
    "fresher",
    "batch",
    "software",
    "data",
    "cloud",
    "mobile",
    "qa",
    "non-tech",
    "experience",
    "employment",
    "work-mode",
]

# Company-wise buckets for targeted scraping, prefixed by company group.
COMPANY_BUCKETS = [
    "faang-meta",
    "faang-apple",
    "faang-amazon",
    "faang-netflix",
    "faang-google",
    "service-tcs",
    "service-infosys",
    "service-wipro",
    "service-hcl",
    "service-cognizant",
    "service-accenture",
    "startup-flipkart",
    "startup-amazon-india",
    "startup-zomato",
    "startup-swiggy",
    "startup-razorpay",
    "startup-ola",
    "it-consulting-deloitte",
    "it-consulting-pwc",
    "it-consulting-capgemini",
]

COMPANY_GROUPS = ["faang", "service", "startup", "it-consulting"]

ALL_BUCKETS = SCRAPE_BUCKETS + COMPANY_BUCKETS

# Selection keywords understood by parse_bucket_selection besides group names.
SELECTION_ALIASES: Dict[str, List[str]] = {
    "all": ALL_BUCKETS,
    "categories": SCRAPE_BUCKETS,
    "companies": COMPANY_BUCKETS,
}


def company_buckets(group: str) -> List[str]:
    """Return the company buckets belonging to one group, e.g. 'faang'."""
    if group not in COMPANY_GROUPS:
        raise ValueError(f"Unknown company group: {group!r}")
    prefix = f"{group}-"
    return [b for b in COMPANY_BUCKETS if b.startswith(prefix)]


def bucket_label(bucket: str) -> str:
    """Display label: company buckets drop their group prefix and are upper-cased."""
    # Longest prefix first so "it-consulting-" is not mistaken for another group.
    for group in sorted(COMPANY_GROUPS, key=len, reverse=True):
        prefix = f"{group}-"
        if bucket.startswith(prefix) and bucket in COMPANY_BUCKETS:
            return bucket[len(prefix):].upper()
    return bucket


def is_known_bucket(bucket: str) -> bool:
    return bucket in ALL_BUCKETS


def parse_bucket_selection(text: str) -> List[str]:
    """Parse a comma-separated bucket selection.

    Besides plain bucket names, `all`, `categories`, `companies` and any
    company group name (`faang`, `service`, ...) expand to their members.
    Unknown names are kept, since the backend may know buckets this catalog
    does not, but they are logged.
    """
    selected: List[str] = []
    for token in (text or "").split(","):
        name = token.strip().lower()
        if not name:
            continue
        if name in SELECTION_ALIASES:
            selected.extend(SELECTION_ALIASES[name])
        elif name in COMPANY_GROUPS:
            selected.extend(company_buckets(name))
        else:
            if not is_known_bucket(name):
                logger.warning("Bucket %r is not in the catalog; sending it anyway", name)
            selected.append(name)
    return uniq_preserve_order(selected)
