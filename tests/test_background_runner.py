import asyncio

from support_desk.infrastructure.scheduler import BackgroundTaskRunner


async def test_submitted_job_runs_detached():
    runner = BackgroundTaskRunner()
    await runner.start()
    done = asyncio.Event()
    seen = []

    async def job(ticket_id):
        seen.append(ticket_id)
        done.set()

    try:
        job_id = runner.submit(job, 7, name="process-ticket-7")
        assert job_id
        await asyncio.wait_for(done.wait(), timeout=5)
    finally:
        await runner.stop()

    assert seen == [7]
    assert not runner.is_running


async def test_start_and_stop_are_idempotent():
    runner = BackgroundTaskRunner()
    await runner.start()
    await runner.start()
    assert runner.is_running

    await runner.stop()
    await runner.stop()
    assert not runner.is_running
