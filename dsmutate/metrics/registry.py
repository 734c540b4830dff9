from prometheus_client import Counter, Histogram

MUTATIONS_CREATED_TOTAL = Counter(
    "dsmutate_mutations_created_total",
    "Mutations built by the constructors",
    ["op_type", "status"],
)

MUTATION_BATCHES_TOTAL = Counter(
    "dsmutate_mutation_batches_total",
    "Mutation batches passed to build_batch",
    ["status"],
)

MUTATION_BATCH_SIZE = Histogram(
    "dsmutate_mutation_batch_size",
    "Wire mutations emitted per successful batch",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500),
)

DELETES_DEDUPLICATED_TOTAL = Counter(
    "dsmutate_deletes_deduplicated_total",
    "Duplicate delete mutations dropped from batches",
)

STORE_APPLY_TOTAL = Counter(
    "dsmutate_store_apply_total",
    "Mutations applied by the local store",
    ["table", "op_type", "status"],
)

STORE_APPLY_LATENCY_SECONDS = Histogram(
    "dsmutate_store_apply_latency_seconds",
    "Latency of applying one batch to the local store",
    ["table"],
)
