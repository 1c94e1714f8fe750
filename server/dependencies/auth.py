import secrets

from fastapi import Header, HTTPException, Request


async def verify_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Reject requests whose X-Api-Key header differs from API_SERVER_API_KEY.

    A missing header is answered with 401 like a wrong one.
    """
    expected_key = request.app.state.helper_config.get_string_val("API_SERVER_API_KEY")
    if x_api_key is None or not secrets.compare_digest(x_api_key.encode(), expected_key.encode()):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
