class ConsensusError(Exception):
    def __init__(self, message):
        super().__init__(message)

class FileIOError(ConsensusError):
    def __init__(self, message):
        super().__init__(message)

class FileReadError(ConsensusError):
    def __init__(self, message):
        super().__init__(message)

class SchemaError(ConsensusError):
    def __init__(self, message):
        super().__init__(message)

class MalformedRecordError(ConsensusError):
    def __init__(self, message):
        super().__init__(message)

class GenotypeRangeError(ConsensusError):
    def __init__(self, message):
        super().__init__(message)

class SinkError(ConsensusError):
    def __init__(self, message):
        super().__init__(message)
