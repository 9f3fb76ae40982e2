"""Built-in CLI sub-commands for discli.

* :mod:`~discli.commands.list` -- list services, resources, or methods.
* :mod:`~discli.commands.describe` -- show details of a service, resource,
  or method, including a minimal request body.
* :mod:`~discli.commands.exec` -- build and send (or print as curl) one
  API request.
* :mod:`~discli.commands.update` -- refresh cached discovery documents.
* :mod:`~discli.commands.config` -- view and modify global settings.

Each module exports a plain callback function registered directly on the
root app, except ``config``, which is a :class:`typer.Typer` sub-application.
Shared plumbing (config resolution, cache access) lives in
:mod:`~discli.commands.common`.
"""
