"""Storage metadata: SSTable versions, the manifest log and compaction planning."""