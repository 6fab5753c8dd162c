import asyncio
import functools
import os
from concurrent.futures import ThreadPoolExecutor

IO_POOL = ThreadPoolExecutor(
    max_workers=int(os.getenv("IO_POOL_WORKERS", "32")),
    thread_name_prefix="doc-chat-io",
)


def run_sync(func, *args, **kwargs):
    """
    Await a blocking call on the shared IO pool.

    The Pinecone and Groq SDKs are synchronous; running them here keeps a
    slow external call from stalling other requests on the event loop.
    """
    loop = asyncio.get_running_loop()
    return loop.run_in_executor(IO_POOL, functools.partial(func, *args, **kwargs))
