"""
Handler modules.

Every public module in this package is discovered by FunctionRegistry and
must define a module-level ``config`` (FunctionConfig) and a
``handler(data, context)`` returning an ExecutionResult. Create new ones
with ``workspace-functions create <name>``.
"""
