USER_GUIDE = """\
SharpScript Language Environment

Usage:
  sharpscript            - Starts the interactive REPL
  sharpscript <file>     - Executes a .sharp script
  sharpscript --help     - Displays this help message

Language Syntax Overview:
  - Declaration:  &insert x = 10;  const y: number = 2;
  - Functions:    function name(void) { ... }  function (a, b = 1) { ... }
  - Control:      if (cond) { ... } else { ... }  while (cond) { ... }
  - Loops:        for (&insert i = 0; i < 3; i++) { ... }  for (x in items) { ... }
  - Matching:     match (x) { case 1: ... default: ... }
  - Errors:       try { system.throw("Bad", "oops", 7); } catch (e) { ... } finally { ... }
  - Output:       system.output(expr);
  - Error/Warn:   system.error(msg); system.warning(msg);
  - Comments:     # This is a comment
"""

DEVELOPER_GUIDE = """\
SharpScript Developer Notes

  - Interpreter(builtins=..., stdout=..., stdin=..., allow_file_io=...) embeds the runtime.
  - Interpreter.run(source) returns a RunResult (value, exception, diagnostics, globals).
  - Builtins receive the interpreter, the unevaluated argument nodes and the caller's
    environment, and return a Value.
  - Soft errors are reported as diagnostics and evaluate to null; system.throw raises
    an error value that try/catch can intercept.
"""

_TOPICS = {
    "help": USER_GUIDE,
    "user": USER_GUIDE,
    "dev": DEVELOPER_GUIDE,
    "developer": DEVELOPER_GUIDE,
}


def get_topic(topic: str) -> str:
    return _TOPICS.get(topic, USER_GUIDE)
