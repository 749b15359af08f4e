# ABOUTME: SafeExit evacuation routing package
# ABOUTME: Building model, hazard store, route engine and dashboard support
