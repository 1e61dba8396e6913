"""R2 file uploads, Mux videos and media processing"""
