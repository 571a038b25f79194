# INCR the key, and if newly created, set expiry atomically.
# Returns [counter, ttl_ms]
LUA_FIXED_WINDOW_INCR_AND_PEXPIRE = """
local counter
counter = redis.call("INCR", KEYS[1])
if tonumber(counter) == 1 then
  redis.call("PEXPIRE", KEYS[1], ARGV[1])
else
  -- ensure TTL exists, return TTL in ms
  local ttl = redis.call("PTTL", KEYS[1])
  if ttl < 0 then
    redis.call("PEXPIRE", KEYS[1], ARGV[1])
  end
end
local ttl = redis.call("PTTL", KEYS[1])
return {counter, ttl}
"""


# Take one slot only while the window is below the limit; the check and the INCR
# run inside one script so two callers can never both take the last slot.
# ARGV[1] = limit, ARGV[2] = window in ms
# Returns [allowed (1|0), counter]
LUA_FIXED_WINDOW_RESERVE = """
local current = tonumber(redis.call("GET", KEYS[1]) or "0")
local limit = tonumber(ARGV[1])
if current >= limit then
  return {0, current}
end
current = redis.call("INCR", KEYS[1])
if tonumber(current) == 1 then
  redis.call("PEXPIRE", KEYS[1], ARGV[2])
end
return {1, current}
"""


# Give a slot back (the write it was reserved for did not happen). Never below zero.
# Returns counter
LUA_FIXED_WINDOW_RELEASE = """
local current = tonumber(redis.call("GET", KEYS[1]) or "0")
if current > 0 then
  current = redis.call("DECR", KEYS[1])
end
return current
"""
