import asyncio


async def gather_or_cancel(*coros):
    """
    asyncio.gather() that cancels the remaining tasks when one fails, so a failed
    render or conversion does not leave its siblings running until their timeout.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
