"""Server startup via pounce.

Starts a pounce ASGI server with the live perch App object.  Route-tree
reloading is handled by the app's own manifest watcher, so pounce's
code reload stays off.
"""


def run_server(app: object, host: str, port: int, *, workers: int = 1) -> None:
    """Start a pounce server with the given perch App.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but perch has a live ``App`` object.  We use ``pounce.Server``
    directly with the ASGI callable.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(host=host, port=port, workers=workers)
    server = Server(config, app)
    server.run()
