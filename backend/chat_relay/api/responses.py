from fastapi.responses import JSONResponse

# JSON error bodies are always {"error": "<message>"}; the browser client reads that key.
METHOD_NOT_ALLOWED = "Method not allowed"
NON_POST_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def method_not_allowed() -> JSONResponse:
    return error_response(METHOD_NOT_ALLOWED, 405)
