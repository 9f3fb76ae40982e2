"""Discovery document fetching and normalization.

Pipeline: :class:`~discli.discovery.fetcher.DocumentFetcher` downloads the
raw document, then :func:`~discli.discovery.normalizer.normalize` turns it
into a :class:`~discli.models.NormalizedTree`.
"""
