import datetime

import pydantic as p


class BaseModel(p.BaseModel):
    # settings models carry dictConfig keys such as "()" and "class" as
    # aliases, and are handed to the container through model_dump()
    model_config = p.ConfigDict(serialize_by_alias=True)


class FrozenModel(BaseModel):
    model_config = p.ConfigDict(frozen=True)


class WithCtime(BaseModel):
    create_time: datetime.datetime


class WithTimestamps(WithCtime):
    update_time: datetime.datetime
