import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import JobNotFound
from ..types.run import Job, JobStep, ResolvedStatus, RunContext, RunIds

STOPPED_CONCLUSIONS = {"failure", "timed_out", "cancelled", "action_required"}

def find_stopped_step(steps: Sequence[JobStep]) -> Optional[JobStep]:
    """First step, in execution order, that ended the job early."""
    for step in steps:
        if step.conclusion in STOPPED_CONCLUSIONS:
            return step
    return None

def find_last_completed_step(steps: Sequence[JobStep]) -> Optional[JobStep]:
    for step in reversed(steps):
        if step.status == "completed":
            return step
    return None

def status_from_conclusion(conclusion: Optional[str]) -> ResolvedStatus:
    if conclusion == "success":
        return ResolvedStatus.SUCCEEDED
    if conclusion == "cancelled":
        return ResolvedStatus.CANCELLED
    return ResolvedStatus.FAILED

def resolve_step_status(steps: Sequence[JobStep]) -> ResolvedStatus:
    step = find_stopped_step(steps) or find_last_completed_step(steps)
    if step is None:
        # nothing finished yet; never report that as success
        return ResolvedStatus.FAILED
    return status_from_conclusion(step.conclusion)

def select_job(jobs_data: Dict[str, Any], job_name: Optional[str]) -> Job:
    jobs: List[Job] = [Job.from_api(j) for j in (jobs_data.get("jobs") or []) if isinstance(j, dict)]
    for job in jobs:
        if job.name == job_name:
            return job
    raise JobNotFound(job_name or "")

class RunContextResolver:
    """Builds the RunContext for one invocation from the runner env and the Actions API.

    `base` carries what the runner already knows (workflow, ref, event payload
    fields); the API adds the run's html_url and, for finish, the job steps.
    """

    def __init__(self, gh, base: RunContext):
        self._gh = gh
        self._base = base

    def _with_run(self, run: Dict[str, Any]) -> RunContext:
        b = self._base
        return RunContext(
            owner_repo=b.owner_repo,
            run_id=b.run_id,
            run_number=b.run_number if b.run_number is not None else run.get("run_number"),
            workflow_name=b.workflow_name or run.get("name"),
            event_name=b.event_name or run.get("event"),
            ref=b.ref,
            actor=b.actor,
            repository_url=b.repository_url,
            repository_full_name=b.repository_full_name,
            pull_request_url=b.pull_request_url,
            run_url=run.get("html_url"),
        )

    async def resolve(self, ids: RunIds) -> RunContext:
        run = await self._gh.get_workflow_run(ids.owner, ids.repo, ids.run_id)
        print(f"[resolver] fetched run {ids.run_id} for {ids.owner_repo}")
        return self._with_run(run)

    async def resolve_with_steps(self, ids: RunIds) -> Tuple[RunContext, ResolvedStatus]:
        run, jobs_data = await asyncio.gather(
            self._gh.get_workflow_run(ids.owner, ids.repo, ids.run_id),
            self._gh.list_jobs_for_workflow_run(ids.owner, ids.repo, ids.run_id),
        )
        ctx = self._with_run(run)

        try:
            job = select_job(jobs_data, ids.job_name)
        except JobNotFound as e:
            print(f"[resolver] {e}; reporting as failed")
            return ctx, ResolvedStatus.FAILED

        status = resolve_step_status(job.steps)
        print(f"[resolver] job {job.name!r}: {len(job.steps)} steps -> {status.label}")
        return ctx, status
