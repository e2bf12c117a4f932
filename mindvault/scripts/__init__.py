# Operator command-line tools (installed as console scripts)
