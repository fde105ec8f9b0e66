from fastapi import APIRouter

app = APIRouter()


# Does not touch the store: answers as long as the process is serving.
@app.get("/health")
async def health():
    return {"status": "ok"}
