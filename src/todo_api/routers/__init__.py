"""HTTP routers: accounts (registration), sessions (login) and todos."""
