from typing import List, Optional

from ..types.run import (
    ComposerOptions,
    Fact,
    NotificationPayload,
    NotifyMeta,
    ResolvedStatus,
    RunContext,
)

def md_link(url: str, label: Optional[str] = None) -> str:
    return f"[{label or url}]({url})"

def _repo_name(ctx: RunContext) -> str:
    return ctx.repository_full_name or ctx.owner_repo

def _repo_ref(ctx: RunContext) -> str:
    if ctx.repository_url:
        return md_link(ctx.repository_url, _repo_name(ctx))
    return _repo_name(ctx)

def branch_or_pr_fact(ctx: RunContext) -> Optional[Fact]:
    if ctx.event_name == "pull_request":
        if not ctx.pull_request_url:
            return None
        return Fact("Pull request", md_link(ctx.pull_request_url))
    if not ctx.repository_url or not ctx.ref:
        return None
    return Fact("Branch", md_link(f"{ctx.repository_url}/tree/{ctx.ref}"))

def run_details_fact(ctx: RunContext) -> Optional[Fact]:
    if not ctx.run_url:
        return None
    return Fact("Workflow run details", md_link(ctx.run_url))

def subtitle(meta: NotifyMeta) -> str:
    who = " ".join(p for p in (meta.name, meta.email) if p)
    if not who:
        return meta.message
    return f"{meta.message} ({who})" if meta.message else f"({who})"

def theme_color(status: ResolvedStatus, options: ComposerOptions) -> str:
    colors = options.colors
    if status is ResolvedStatus.STARTED:
        return colors.started
    if status is ResolvedStatus.SUCCEEDED:
        return colors.success
    if status is ResolvedStatus.CANCELLED:
        return colors.cancelled
    return colors.failure

def compose_facts(
    ctx: RunContext,
    status: ResolvedStatus,
    meta: NotifyMeta,
    options: ComposerOptions,
) -> List[Fact]:
    facts: List[Fact] = []
    if options.include_env_fact and meta.env:
        facts.append(Fact("Environment", meta.env))

    fact = branch_or_pr_fact(ctx)
    if fact:
        facts.append(fact)

    if (
        status is ResolvedStatus.SUCCEEDED
        and meta.publish_url
        and options.include_publish_url_on_success
    ):
        facts.append(Fact("Published site", md_link(meta.publish_url)))
    else:
        fact = run_details_fact(ctx)
        if fact:
            facts.append(fact)
    return facts

def compose(
    phase: str,
    ctx: RunContext,
    status: Optional[ResolvedStatus] = None,
    meta: Optional[NotifyMeta] = None,
    options: Optional[ComposerOptions] = None,
) -> NotificationPayload:
    """Build the MessageCard for a start or finish notification.

    Pure: identical inputs give identical payloads. `status` is ignored for
    the start phase and treated as FAILED when missing for finish.
    """
    meta = meta or NotifyMeta()
    options = options or ComposerOptions()

    if phase == "start":
        status = ResolvedStatus.STARTED
        actor = meta.name or ctx.actor or "unknown"
        title = (
            f"Workflow {ctx.workflow_name} #{ctx.run_number} started by {actor} "
            f"on {_repo_ref(ctx)}"
        )
    else:
        if status is None or status is ResolvedStatus.STARTED:
            status = ResolvedStatus.FAILED
        title = (
            f"Workflow {ctx.workflow_name} #{ctx.run_number} {status.label} "
            f"on {_repo_ref(ctx)}"
        )

    return NotificationPayload(
        theme_color=theme_color(status, options),
        summary=f"{_repo_name(ctx)} workflow {status.label}",
        activity_title=title,
        activity_subtitle=subtitle(meta),
        facts=tuple(compose_facts(ctx, status, meta, options)),
        markdown=True,
    )
