"""Fixed values shared across pipeline stages."""

CORRECTED_RESPONSE_MARKER = "\n\n---\n\n**Corrected Response:**\n\n"

EXCERPT_SUFFIX = "..."

STEP_ANALYZING = "Analyzing query..."
STEP_SEARCHING = "Searching documents..."
STEP_RANKING = "Ranking results..."
STEP_GENERATING = "Generating response..."
STEP_VERIFYING = "Verifying response..."
STEP_RECONCILING = "Reconciling disagreement..."
STEP_UPDATING = "Updating response..."

VERIFY_PARSE_FAILED_NOTE = "Verification parsing failed, assuming agreement"
VERIFY_API_FAILED_NOTE = "Verification failed due to API error, passing through"
RECONCILE_PARSE_FAILED_NOTE = "Reconciliation parsing failed"
RECONCILE_API_FAILED_NOTE = "Reconciliation failed due to API error, using primary answer"
