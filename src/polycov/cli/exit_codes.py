"""Process exit codes for the polycov CLI."""

EXIT_SUCCESS = 0
# Report generation failed: output directory or summary not writable, or the
# run was interrupted.
EXIT_RUN_FAILURE = 2
# Bad arguments or invalid configuration.
EXIT_INVALID_USAGE = 3
