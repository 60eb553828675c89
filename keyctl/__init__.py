"""keyctl - command-line front end for Entropy Keys."""
