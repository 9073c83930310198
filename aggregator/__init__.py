"""About Aggregator — collects ``__/about`` documents from a Kubernetes fleet.

Services carrying the configured label are discovered through the Kubernetes
API, their ``/__/about`` endpoint is polled, and the results are republished
to an in-process HTTP cache and a Confluence page.

Quickstart::

    python -m aggregator --label about=true \\
        --confluence-host https://example.atlassian.net \\
        --confluence-page-id 1234
"""

__version__ = "1.0.0"
