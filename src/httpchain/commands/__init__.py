"""Built-in CLI sub-commands for httpchain.

* :mod:`~httpchain.commands.request` -- send a single HTTP request.
* :mod:`~httpchain.commands.config` -- manage client profiles.

``config`` exports a :class:`typer.Typer` sub-application; ``request`` is a
plain callback registered directly on the root app.
"""
