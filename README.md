# educlaw

Building blocks for an AI learning companion that serves primary and
secondary school students, their parents and their teachers. The package
uses only the standard library.

- `educlaw.routing`: picks the agent persona for a message. The personas
  are tutor, companion, planner, analyst, parent or teacher.
- `educlaw.commands`: chat slash commands `/help`, `/list`, `/show model`,
  `/show skill <name>` and `/clear`, with a registry and an executor.
- `educlaw.cron` and `educlaw.cronexpr`: a reminder scheduler that stores
  its jobs in a JSON file. It supports one-time, interval and five-field
  cron-expression schedules.
- `educlaw.bus`: a per-session publish/subscribe message bus.
- `educlaw.health`: liveness and readiness status with named checks.
- `educlaw.llm_types`: chat-completion data types (messages, tool calls,
  tools, requests and responses).
- `educlaw.signatures`: captures the "thought signatures" that some
  thinking models attach to tool calls, and puts them back into later
  request bodies.
- `educlaw.history`: cleans up and shortens chat history, and summarises
  tool activity.
- `educlaw.profiles`: the initial profile text and portal path for newly
  registered students, families and teachers.

## Installation

```
pip install .
pip install ".[test]" && pytest   # to run the tests
```

## Command line

```
educlaw version
```

This prints `EduClaw v0.1.0`. If you run `educlaw` with no command, it
prints the help text.

## Routing

```python
from educlaw.routing import route

route("student", "我们来玩个游戏吧")   # "companion"
route("teacher", "help me with a lesson plan")  # "planner"
route("parent", "how is the progress?")  # "analyst"
```

## Slash commands

```python
from educlaw.commands import Executor, Registry, Request, Runtime, builtins

replies = []
executor = Executor(Registry(builtins()), Runtime(list_definitions=builtins))
result = executor.execute(Request(text="/help", reply=replies.append))
print(result.handled, result.command)   # True help
print(replies[0])
```

The executor ignores text that does not start with `/`, and it ignores
unknown commands. In both cases `handled` is `False`. If a handler raises
an exception, the executor does not re-raise it. It reports the exception
in `ExecuteResult.error`.

## Reminders

```python
from educlaw.cron import CronService, Payload, Schedule

service = CronService("/tmp/educlaw/cron/jobs.json")
service.set_handler(lambda job: print("remind", job.payload.actor_id, job.payload.message))
service.add_job(
    "daily practice",
    Schedule(kind="cron", expr="0 19 * * *"),
    Payload(message="该做练习了！", actor_id="s1", actor_type="student"),
)
service.start()   # checks for due jobs once a second on a background thread
...
service.stop()
```

How each schedule kind behaves:

- **`at`**: fires once at `at_ms`, then the job is deleted.
- **`every`**: repeats every `every_ms` milliseconds.
- **`cron`**: uses `educlaw.cronexpr.next_tick_after` to find the next
  matching minute.

A failed handler call does not stop the scheduler. The job's
`state.last_status` is set to `"error"`, and the message is stored in
`state.last_error`.

## Message bus and health

```python
from educlaw.bus import MessageBus, OutboundMessage
from educlaw.health import HealthManager

bus = MessageBus()
q = bus.subscribe("session-1")
bus.publish(OutboundMessage(session_id="session-1", content="hi", content_type="text"))
print(q.get_nowait().content)

health = HealthManager()
health.set_ready(True)
health.register_check("db", lambda: (True, "connected"))
status, ok = health.ready_status()   # status.status == "ready"
```

## History helpers

`sanitize_history` removes two kinds of messages:

- tool results that no assistant tool call asked for
- assistant turns whose tool calls are not all answered

`truncate_history(messages, n)` keeps the history from the n-th last user
message onward.

## What this package does not include

The package does not include any of the following:

- a client that calls model endpoints
- loading of configuration files
- a web server
- a heartbeat service
- the persona system-prompt texts
- database or workspace storage of student records

`educlaw.llm_types` and `educlaw.signatures` give you the data shapes and
the signature handling for such a client, but not the network calls. The
only command is `educlaw version`.