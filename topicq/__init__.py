"""topicq moves payloads between producer and consumer threads through bounded topic queues."""
