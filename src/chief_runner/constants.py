STATE_DIR_NAME = ".chief"
WORKTREES_DIR_NAME = "worktrees"
CHIEF_HOME_ENV = "CHIEF_HOME"
LOG_LEVEL_ENV = "CHIEF_LOG_LEVEL"

TASKS_FILE = "tasks.json"
TASKS_SCHEMA_FILE = "tasks.schema.json"
PLAN_FILE = "plan.md"
VERIFICATION_FILE = "verification.txt"
CONFIG_FILE = "config.yaml"

DEFAULT_AGENT_COMMAND = "claude"
DEFAULT_PR_MODEL = "sonnet"
DEFAULT_BREAKDOWN_MODEL = "sonnet"
DEFAULT_LOG_LEVEL = "WARNING"

# package.json scripts offered first in the guided verification picker
PREFERRED_SCRIPT_NAMES = (
    "lint",
    "typecheck",
    "type-check",
    "check",
    "test",
    "build",
)

ENV_FILE_PREFIX = ".env"
