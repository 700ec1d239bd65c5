"""Terminal market monitor backed by a TTL cache-aside fetch layer."""
