"""HTTP types — request, response, headers, query, and body decoding."""
