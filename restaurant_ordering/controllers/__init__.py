def respond(data=None, message=None, status=200):
    """Wrap a payload in the ``{success, data, message}`` envelope."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body, status
