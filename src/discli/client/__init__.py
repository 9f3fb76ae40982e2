"""HTTP execution of built requests.

:class:`~discli.client.executor.Executor` sends a
:class:`~discli.models.RequestDescriptor` exactly as the request builder
produced it.
"""

from discli.client.executor import Executor

__all__ = ["Executor"]
