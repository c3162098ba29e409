# run_all.py
import asyncio
import sys
from pathlib import Path

from app.config.settings import settings

ROOT = Path(__file__).resolve().parent


async def run_process(name: str, cmd: list):
    """
    Runs a subprocess and streams logs to console.
    """
    print(f"▶ Starting {name}: {' '.join(cmd)}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=ROOT,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    async def _pipe_reader(stream, prefix):
        while True:
            line = await stream.readline()
            if not line:
                break
            print(f"[{prefix}] {line.decode().rstrip()}")

    # concurrently stream logs
    await asyncio.gather(
        _pipe_reader(process.stdout, name),
        _pipe_reader(process.stderr, name),
    )


def needs_redis() -> bool:
    return settings.SESSION_BACKEND.lower() == "redis" or settings.REPLY_VIA_QUEUE


async def main():
    tasks = []

    # ---------------------------
    # 1️⃣ Redis + ARQ worker, only when sessions or replies go through Redis
    # ---------------------------
    if needs_redis():
        tasks.append(run_process("REDIS", ["redis-server"]))
    if settings.REPLY_VIA_QUEUE:
        arq_cmd = [
            sys.executable,
            "-m",
            "arq",
            "app.infrastructure.queue.arq_settings.WorkerSettings",
        ]
        tasks.append(run_process("ARQ", arq_cmd))

    # ---------------------------
    # 2️⃣ FastAPI/Uvicorn app
    # ---------------------------
    uvicorn_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "app.main:app",
        "--reload",
        "--host", "0.0.0.0",
        "--port", "8000",
    ]
    tasks.append(run_process("APP", uvicorn_cmd))

    await asyncio.gather(*tasks)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Shutting down...")
