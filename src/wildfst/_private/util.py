import subprocess

def check_graphviz_installed(executable="dot"):
    """True if the graphviz layout program can be run."""
    try:
        subprocess.run([executable, "-V"], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
