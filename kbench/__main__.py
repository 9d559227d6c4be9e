import sys

import kbench
from kbench.errors import PipelineFailure, VerificationFailure

# Exit codes
OK = 0
WRONG_RESULT = 1
PIPELINE_FAILURE = 2


def main():
    for name in ("vector-add", "matrix-multiply"):
        try:
            kbench.run(name)
        except VerificationFailure as e:
            print(f"Verification failed: {e}", file=sys.stderr)
            return WRONG_RESULT
        except PipelineFailure as e:
            print(f"{type(e).__name__}: {e}", file=sys.stderr)
            return PIPELINE_FAILURE
        except Exception as e:
            # A runtime error outside the taxonomy is still not a wrong result
            print(f"Unexpected {type(e).__name__}: {e}", file=sys.stderr)
            return PIPELINE_FAILURE
        print()
    return OK


if __name__ == "__main__":
    sys.exit(main())
