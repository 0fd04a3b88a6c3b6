"""ASGI handler: translates ASGI scope/messages to perch types.

The only component that touches raw ASGI for HTTP.  Converts the scope to
a typed Request, hands it to the dispatcher, and sends the Response.
"""

from perch._internal.asgi import Receive, Scope, Send
from perch.http.request import Request
from perch.server.dispatch import Dispatcher
from perch.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    outcome = await dispatcher.dispatch(request)
    await send_response(outcome.response, send, head=request.method == "HEAD")
