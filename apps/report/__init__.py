"""Report app: research-report catalog."""
