import pulumi

from devbox_infra import create_stack, export_outputs, load_settings

# --- Configuration ---
settings = load_settings(pulumi.Config())

# --- Resources ---
stack = create_stack(settings)

# --- Exports ---
export_outputs(stack)
