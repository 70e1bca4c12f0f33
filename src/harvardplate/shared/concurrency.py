import asyncio


def make_llm_semaphore(limit: int) -> asyncio.Semaphore:
    return asyncio.Semaphore(max(1, int(limit)))
