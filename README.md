# symphony

Building blocks for a service that takes issues from a tracker and hands them
to coding agents. The package covers workflow files, configuration value
parsing, dispatch decisions, retry scheduling, token accounting, runtime
snapshots and an HTML dashboard page.

## Installation

```
pip install .
```

To run the tests, install the test extra with `pip install .[test]`, then run `pytest`.

## Modules

| Module | Contents |
| --- | --- |
| `symphony.errors` | Every exception the package defines |
| `symphony.normalization` | `normalize_state_name`, `normalize_label`, `sanitize_workspace_key`, `parse_comma_separated` |
| `symphony.issue` | `Issue`, `BlockerRef` and the field parsers (`parse_issue_id`, `parse_issue_identifier`, `parse_issue_title`, `parse_issue_state`, `parse_normalized_state`, `parse_label`) |
| `symphony.config` | `ServiceConfig` and its parts, `TrackerKind`, `LiteralValue`, `EnvironmentVariable` and the value parsers |
| `symphony.runtime` | `RuntimeState`, `RunningEntry`, `RetryEntry`, `LiveSession`, `CodexTotals` |
| `symphony.workflow` | `WorkflowDefinition` |
| `symphony.workflow_loader` | `parse_workflow` |
| `symphony.prompt` | `render_issue_prompt` |
| `symphony.orchestrator` | Dispatch policy, retry planning and token accounting |
| `symphony.snapshot` | `RuntimeSnapshot` and `build_runtime_snapshot` |
| `symphony.ui` | `render_dashboard` and the HTML formatting helpers |

## Workflow files

A workflow file is Markdown. It may begin with YAML front matter between `---`
lines, which holds the configuration. The rest of the file is the prompt
template. `parse_workflow` takes the file's text, not a path.

```python
from symphony.workflow_loader import parse_workflow

workflow = parse_workflow("""---
tracker:
  kind: linear
  project_slug: APP
---

Hello {{ issue.identifier }}
""")
workflow.config["tracker"]["kind"]   # "linear"
workflow.prompt_template             # "Hello {{ issue.identifier }}"
```

Text that does not begin with a `---` line becomes the prompt template as a
whole, with an empty config. Front matter that has no closing `---` line, that
is not valid YAML, or whose top-level keys are not strings raises
`WorkflowParseError`. Front matter that is not a mapping raises
`WorkflowFrontMatterNotAMapError`. YAML timestamps are kept as strings.

## Configuration values

`symphony.config` holds the dataclasses of a service configuration and the
parsers for single values:

- `parse_positive_ms(field, raw, default)` and
  `parse_positive_count(field, raw, default)` use `default` when `raw` is zero
  or negative; the result must be at least 1.
- `parse_workspace_root(raw)` trims and rejects an empty root.
- `parse_state_list("Todo, In Progress,Done")` returns
  `["Todo", "In Progress", "Done"]`; an empty list is an error.
- `parse_env_resolved_value("$LINEAR_API_KEY")` returns
  `EnvironmentVariable("LINEAR_API_KEY")`; any other non-empty text returns
  `LiteralValue(text)`.

Invalid values raise `InvalidValueError`, a `DomainError`.

## Prompts

```python
from symphony.issue import Issue
from symphony.prompt import render_issue_prompt

issue = Issue(id="abc123", identifier="ABC-123", title="Fix orchestrator", state="In Progress")
render_issue_prompt("Issue {{ issue.identifier }} attempt={{ attempt }}", issue, 3)
# "Issue ABC-123 attempt=3"
```

Templates are Jinja2. The context holds `issue` (from `Issue.to_dict()`) and
`attempt`. Every variable the template refers to, in `{{ ... }}` expressions
and `{% for ... in ... %}` loops, must exist; an unknown one raises
`TemplateRenderError`. A template that does not parse raises
`TemplateParseError`. The result is trimmed.

## Dispatch and retries

`symphony.orchestrator` works on a `RuntimeState` and a `DispatchPolicy`
(normalised active and terminal state names plus an `AgentConfig`):

- `sort_for_dispatch` orders issues by priority (issues without one last),
  then creation time (issues without one first), then identifier.
- `should_dispatch` refuses issues that are running or claimed, not in an
  active state or in a terminal one, when no slots are free, when the per-state
  limit in `max_concurrent_agents_by_state` (or `max_concurrent_agents`) is
  reached, and `todo` issues with a blocker whose state is unknown or not
  terminal.
- `register_running_issue` claims an issue, clears its pending retry and
  records it as running.
- `apply_worker_exit` removes a running issue and schedules its retry,
  returning the `RetryEntry` (or `None` if the issue was not running). The
  reason is a `WorkerExitReason` with an `ExitKind`:
  - `NORMAL`: attempt 1 after `continuation_delay_ms()` (1000 ms); the issue
    is added to `completed`.
  - `FAILED`, `TIMED_OUT`, `STALLED`: the attempt is incremented and delayed by
    `failure_backoff_ms(attempt, max_backoff_ms)`, which starts at 10 000 ms
    and doubles per attempt up to the maximum. The error is the given text,
    `"turn_timeout"` or `"stalled"`.
- `compute_retry_plan` returns the same plan as a `RetryPlan` without touching
  the runtime.
- `apply_absolute_token_totals` takes the absolute token counts an agent
  reports and adds each increase to the runtime totals exactly once.
- `parse_running_state_count` counts running issues per normalised state.

```python
from symphony.orchestrator import ExitKind, WorkerExitReason, apply_worker_exit

apply_worker_exit(runtime, "id-1", WorkerExitReason(ExitKind.FAILED, "boom"), now_ms, 300_000)
```

## Snapshots and the dashboard

`build_runtime_snapshot(runtime, now)` summarises the runtime state as a
`RuntimeSnapshot`. Its total running seconds are the stored total plus the
whole seconds each running issue has been running. `RuntimeSnapshot.to_dict()`
returns plain data with RFC 3339 timestamps.

`symphony.ui.render_dashboard(snapshot)` returns a complete HTML page as a
string: counts, token totals, tables of running sessions and queued retries,
and the rate limit payload. The snapshot is also embedded in a
`<script type="application/json">` element, escaped by
`escape_json_for_html_script` so that it cannot close the script. Text in
table cells is escaped by `escape_html_text`.

The page links a client bundle at `/<site_pkg_dir()>/<output_name()>.js`.
`output_name()`, `site_pkg_dir()` and `site_root()` read the environment
variables `LEPTOS_OUTPUT_NAME`, `LEPTOS_SITE_PKG_DIR` and `LEPTOS_SITE_ROOT`,
defaulting to `symphony-app`, `pkg` and `target/site`.

## Errors

All exceptions live in `symphony.errors`:

- `DomainError` (a `ValueError`): `InvalidValueError`, `MissingFieldError`.
- `WorkflowError`: `WorkflowParseError`, `WorkflowFrontMatterNotAMapError`,
  `MissingWorkflowFileError`.
- `PromptError`: `TemplateParseError`, `TemplateRenderError`.
- `ConfigError`: `UnsupportedTrackerKindError`, `MissingTrackerApiKeyError`,
  `MissingTrackerProjectSlugError`, `InvalidConfigError`.

## What this package does not do

- It does not build a `ServiceConfig` from a workflow's front matter; the
  config dataclasses and value parsers are here, but assembling them is left
  to the caller. Nothing in the package raises the `ConfigError` classes or
  `MissingWorkflowFileError`; they are provided for that caller.
- It does not read workflow files from disk or watch them for changes.
- It does not talk to an issue tracker or run agents.
- It does not serve HTTP: the dashboard is rendered to a string, and there is
  no state or refresh API and no client bundle for the page to load.
- There is no command-line program.