"""mpconf command line interface."""
