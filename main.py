import uvicorn

from gymhub.main import app  # noqa: F401


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8080, reload=True)
