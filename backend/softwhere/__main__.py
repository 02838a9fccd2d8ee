import uvicorn

from softwhere import config

if __name__ == "__main__":
    uvicorn.run("softwhere.main:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
