"""bujo: journal backend server and client time bootstrap."""
