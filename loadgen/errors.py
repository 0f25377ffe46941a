"""Error taxonomy of the load generator.

Structural errors (configuration, connection, schema) end the run.
Transaction errors are contained in a worker's retry loop.
"""


class LoadgenError(Exception):
    pass


class ConfigError(LoadgenError):
    pass


class BackendConnectionError(LoadgenError):
    pass


class SchemaError(LoadgenError):
    pass


class TransactionError(LoadgenError):
    pass


class BeginError(TransactionError):
    pass


class BatchError(TransactionError):
    pass


class CommitError(TransactionError):
    pass


class RollbackError(LoadgenError):
    pass
