from .memory import Memory, MemoryPage, MemorySource, ScoredMemory, iso_timestamp

__all__ = ['Memory', 'MemoryPage', 'MemorySource', 'ScoredMemory', 'iso_timestamp']
